# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the packaging pipeline.

Every error here is fatal for the run. The CLI catches PackagingError once,
logs the description and exits nonzero. The pipeline records the stage it
was in when the error surfaced on `stage`.
"""

from typing import Optional


class PackagingError(Exception):
    """Base for all packaging pipeline errors."""

    stage: Optional[str] = None


class ManifestParseError(PackagingError):
    """Raised when the build manifest is unreadable or lacks name/version."""


class ArchiveError(PackagingError):
    """Raised when a declared source path is missing or tar exits nonzero."""


class WriteError(PackagingError):
    """
    Raised when an artifact can't be written to the output directory, or
    when the bytes on disk don't hash to what was rendered.
    """


class BuilderInvocationError(PackagingError):
    """
    Raised when the package builder exits nonzero or can't be started.

    Carries the builder's exit status (None when it never ran) and its
    captured stderr so the CLI can propagate the status and the operator can
    see why.
    """

    def __init__(self, message: str, exit_status: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_status = exit_status
        self.stderr = stderr
