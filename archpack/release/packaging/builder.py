# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package builder invocation.

Runs the configured builder (`makepkg -f` by default) inside the output
directory and finds the package it produced. makepkg names packages
`<pkgname>-<pkgver>-<pkgrel>-<arch>.pkg.tar.<ext>`; the deployment step
downstream picks them up with `<name>-*.pkg.*`.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from archpack.logging.logger import get_logger
from archpack.release.exceptions import BuilderInvocationError
from archpack.release.manifests.reader import ReleaseDescriptor
from archpack.utils.process import NO_EXIT_CODE, ProcessResult, run_process

_logger: logging.Logger = get_logger(__name__)

# Detached signatures makepkg may write next to the package.
_SIGNATURE_SUFFIX = ".sig"


def invoke_builder(
    command: Sequence[str],
    output_dir: Path,
    timeout_seconds: Optional[float] = None,
) -> ProcessResult:
    """
    Run the package builder against the PKGBUILD in output_dir.

    Returns:
        The builder's ProcessResult, only when it exited 0.

    Raises:
        BuilderInvocationError: Nonzero exit, missing executable or timeout.
    """
    _logger.info(
        "Invoking package builder",
        extra={"command": list(command), "cwd": str(output_dir)},
    )
    result = run_process(command, cwd=output_dir, timeout_seconds=timeout_seconds)

    if not result.success:
        exit_status = None if result.exit_code == NO_EXIT_CODE else result.exit_code
        raise BuilderInvocationError(
            f"Package builder {command[0]!r} failed with status {result.exit_code}: "
            f"{result.diagnostic_tail()}",
            exit_status=exit_status,
            stderr=result.stderr,
        )

    _logger.info(
        "Package builder finished",
        extra={"elapsed_seconds": round(result.elapsed_seconds, 3)},
    )
    return result


def package_glob(descriptor: ReleaseDescriptor) -> str:
    """Glob matching the package built for exactly this name, version and release."""
    return f"{descriptor.name}-{descriptor.version}-{descriptor.release}-*.pkg.*"


def locate_package(output_dir: Path, descriptor: ReleaseDescriptor) -> Optional[Path]:
    """
    Find the package file the builder produced, or None.

    If several match (one per arch), the first in sorted order wins.
    """
    candidates = sorted(
        path
        for path in output_dir.glob(package_glob(descriptor))
        if path.is_file() and not path.name.endswith(_SIGNATURE_SUFFIX)
    )
    if not candidates:
        _logger.warning(
            "No package file found after build",
            extra={"output_dir": str(output_dir), "pattern": package_glob(descriptor)},
        )
        return None
    return candidates[0]
