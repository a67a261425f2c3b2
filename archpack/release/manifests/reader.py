# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build manifest reader.

Pulls the package name and version out of a Cargo.toml without loading it as
TOML. We only need two scalar fields from the [package] table, and matching
them line by line keeps the reader independent of the rest of the manifest
(workspace tables, dependency syntax, features).

The contract is deliberately narrow:
  - a field is a line of the form `key = "value"` starting at column 0
  - the first match wins; later `name = ...` lines (e.g. in [[bin]] tables)
    are ignored
  - names are word characters and hyphens, versions digits and dots
"""

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from archpack.logging.logger import get_logger
from archpack.release.exceptions import ManifestParseError

_logger: logging.Logger = get_logger(__name__)

NAME_PATTERN: re.Pattern[str] = re.compile(r'^name\s*=\s*"([\w-]+)"', re.MULTILINE)
VERSION_PATTERN: re.Pattern[str] = re.compile(r'^version\s*=\s*"([\d.]+)"', re.MULTILINE)

# pkgrel granularity when derived from the clock: one step per 100 seconds.
CLOCK_RELEASE_DIVISOR = 100


@dataclass(frozen=True)
class ReleaseDescriptor:
    """
    Identity of one packaging run.

    `release` distinguishes rebuilds of an unchanged version. It ends up as
    pkgrel in the PKGBUILD and nowhere else.
    """

    name: str
    version: str
    release: int

    @property
    def archive_name(self) -> str:
        return f"{self.name}-{self.version}.tar.gz"


def release_counter_from_clock(now: Optional[float] = None) -> int:
    """Coarse epoch-based release counter: seconds since epoch divided by 100."""
    if now is None:
        now = time.time()
    return int(now) // CLOCK_RELEASE_DIVISOR


def _extract_field(pattern: re.Pattern[str], text: str, field_name: str, manifest_path: Path) -> str:
    match = pattern.search(text)
    if match is None:
        raise ManifestParseError(
            f"No '{field_name}' field matching {pattern.pattern!r} in {manifest_path}"
        )
    return match.group(1)


def parse_descriptor(text: str, release: int, manifest_path: Path = Path("<memory>")) -> ReleaseDescriptor:
    """
    Extract name and version from manifest text.

    Args:
        text: Full manifest contents.
        release: Release counter chosen by the caller.
        manifest_path: Used in error messages only.

    Raises:
        ManifestParseError: If either field has no match.
    """
    name = _extract_field(NAME_PATTERN, text, "name", manifest_path)
    version = _extract_field(VERSION_PATTERN, text, "version", manifest_path)
    return ReleaseDescriptor(name=name, version=version, release=release)


def read_descriptor(manifest_path: Path, release: int) -> ReleaseDescriptor:
    """
    Read a build manifest from disk and return the release descriptor.

    Args:
        manifest_path: Path to Cargo.toml (or any manifest with the same
            `key = "value"` shape).
        release: Release counter. The reader never picks this value itself.

    Returns:
        Frozen ReleaseDescriptor.

    Raises:
        ManifestParseError: If the file can't be read or a field is missing.
    """
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ManifestParseError(f"Cannot read manifest {manifest_path}: {err}") from err

    descriptor = parse_descriptor(text, release, manifest_path)

    _logger.info(
        "Manifest read",
        extra={
            "manifest": str(manifest_path),
            "package_name": descriptor.name,
            "version": descriptor.version,
            "release": descriptor.release,
        },
    )
    return descriptor
