# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Source archiver.

Packs the declared source paths into `<name>-<version>.tar.gz` with the
system `tar`, relative to the source root, so the PKGBUILD's build() stage
finds `Cargo.toml` and `src/` at the top of its extracted sources.

A missing source path is a hard failure. An archive without, say, the
templates directory would still build but ship a broken service, and nothing
downstream would notice.
"""

import logging
from pathlib import Path
from typing import Sequence

from archpack.logging.logger import get_logger
from archpack.release.exceptions import ArchiveError
from archpack.utils.paths import ensure_directory, validate_path_within_root
from archpack.utils.process import ProcessResult, run_process

_logger: logging.Logger = get_logger(__name__)

TAR_EXECUTABLE = "tar"


def check_source_paths(source_paths: Sequence[str], source_root: Path) -> None:
    """
    Verify every declared source path exists inside the source root.

    Reports all missing paths at once, not just the first.

    Raises:
        ArchiveError: If the list is empty, a path escapes the root, or any
            path does not exist.
    """
    if not source_paths:
        raise ArchiveError("No source paths declared; refusing to build an empty archive")

    missing: list[str] = []
    for relative in source_paths:
        candidate = source_root / relative
        try:
            validate_path_within_root(candidate, source_root)
        except ValueError as err:
            raise ArchiveError(str(err)) from err
        if not candidate.exists():
            missing.append(relative)

    if missing:
        raise ArchiveError(
            f"Declared source paths do not exist under {source_root}: {', '.join(missing)}"
        )


def build_archive(
    output_path: Path,
    source_paths: Sequence[str],
    source_root: Path,
) -> ProcessResult:
    """
    Create a gzip-compressed tarball of the source paths.

    Directories are added recursively. Entries keep their paths relative to
    `source_root`, in the order given.

    Args:
        output_path: Destination .tar.gz file. Its parent is created if absent.
        source_paths: Paths relative to source_root.
        source_root: Directory tar runs in.

    Returns:
        The ProcessResult of the tar invocation.

    Raises:
        ArchiveError: Missing source path, unusable destination, tar not
            installed, or nonzero exit.
    """
    check_source_paths(source_paths, source_root)
    try:
        ensure_directory(output_path.parent)
    except OSError as err:
        raise ArchiveError(f"Cannot create archive directory {output_path.parent}: {err}") from err

    command = [TAR_EXECUTABLE, "-czf", str(output_path.resolve()), "--", *source_paths]
    result = run_process(command, cwd=source_root)

    if not result.success:
        raise ArchiveError(
            f"tar exited with status {result.exit_code} while creating {output_path}: "
            f"{result.diagnostic_tail()}"
        )

    _logger.info(
        "Archive created",
        extra={
            "archive": str(output_path),
            "sources": list(source_paths),
            "size_bytes": output_path.stat().st_size,
        },
    )
    return result
