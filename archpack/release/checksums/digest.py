# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Digest computation and PKGBUILD checksum verification.

makepkg refuses to build when an entry of `sha256sums` doesn't match its
`source` file, so the rule here is: hash exactly the bytes that end up on
disk.
  - rendered artifacts are hashed from the same bytes object that gets
    written
  - the archive is hashed by re-reading it from disk, since tar owns its
    framing and we never hold it in memory

verify_recipe reads a written PKGBUILD back and checks every entry, the way
the builder will, and reports all problems rather than just the first.
"""

import logging
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from archpack.logging.logger import get_logger
from archpack.release.artifacts import RECIPE_FILENAME, ArtifactSet, DigestSet
from archpack.release.exceptions import ArchiveError
from archpack.utils.hashing import SHA256_HEX_LENGTH, compute_sha256, compute_sha256_bytes

_logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking a PKGBUILD's sha256sums against its source files."""

    is_valid: bool
    checked_count: int
    mismatches: list[str] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def digest(content: bytes) -> str:
    """Lowercase hex SHA256 of in-memory content."""
    return compute_sha256_bytes(content)


def digest_file(path: Path) -> str:
    """Lowercase hex SHA256 of a file, streamed from disk."""
    return compute_sha256(path)


def compute_digests(archive_path: Path, artifacts: ArtifactSet) -> DigestSet:
    """
    Build the DigestSet for one run: archive first, then each rendered
    artifact in source order.

    Args:
        archive_path: The tarball as written by the archiver.
        artifacts: The finalized rendered artifacts.

    Returns:
        DigestSet whose filenames and digests feed the PKGBUILD arrays.

    Raises:
        ArchiveError: If the archive can't be read back.
    """
    try:
        archive_digest = digest_file(archive_path)
    except OSError as err:
        raise ArchiveError(f"Cannot read archive {archive_path} for hashing: {err}") from err

    entries: list[tuple[str, str]] = [(archive_path.name, archive_digest)]
    for artifact in artifacts:
        entries.append((artifact.filename, digest(artifact.content)))

    for filename, hexdigest in entries:
        _logger.debug(
            "Computed digest",
            extra={"file": filename, "sha256": hexdigest[:16] + "..."},
        )

    _logger.info("Digests computed", extra={"file_count": len(entries)})
    return DigestSet(entries=tuple(entries))


def _extract_array(recipe_text: str, array_name: str) -> list[str]:
    pattern = re.compile(rf"^{array_name}=\((.*?)\)", re.MULTILINE | re.DOTALL)
    match = pattern.search(recipe_text)
    if match is None:
        raise ValueError(f"No {array_name}=(...) array in recipe")
    return shlex.split(match.group(1))


def parse_recipe_checksums(recipe_path: Path) -> list[tuple[str, str]]:
    """
    Parse the `source` and `sha256sums` arrays of a PKGBUILD into pairs.

    Raises:
        FileNotFoundError: If the recipe doesn't exist.
        ValueError: If either array is absent, the lengths differ, or a
            digest is not 64 hex characters.
    """
    if not recipe_path.is_file():
        raise FileNotFoundError(f"Recipe not found: {recipe_path}")

    text = recipe_path.read_text(encoding="utf-8")
    sources = _extract_array(text, "source")
    sums = _extract_array(text, "sha256sums")

    if len(sources) != len(sums):
        raise ValueError(
            f"source has {len(sources)} entries but sha256sums has {len(sums)}"
        )

    for index, value in enumerate(sums):
        if len(value) != SHA256_HEX_LENGTH:
            raise ValueError(
                f"Invalid SHA256 at sha256sums[{index}]: expected "
                f"{SHA256_HEX_LENGTH} chars, got {len(value)}"
            )

    return list(zip(sources, sums))


def verify_recipe(output_dir: Path) -> VerificationResult:
    """
    Verify every source file in an output directory against its PKGBUILD.

    Args:
        output_dir: Directory containing PKGBUILD and its source files.

    Returns:
        VerificationResult with pass/fail status and details.
    """
    recipe_path = output_dir / RECIPE_FILENAME
    if not recipe_path.is_file():
        return VerificationResult(
            is_valid=False,
            checked_count=0,
            errors=[f"{RECIPE_FILENAME} not found in {output_dir}"],
        )

    try:
        pairs = parse_recipe_checksums(recipe_path)
    except ValueError as err:
        return VerificationResult(
            is_valid=False,
            checked_count=0,
            errors=[f"Failed to parse {RECIPE_FILENAME}: {err}"],
        )

    mismatches: list[str] = []
    missing_files: list[str] = []
    checked = 0

    for filename, expected_hash in pairs:
        file_path = output_dir / filename
        if not file_path.is_file():
            missing_files.append(filename)
            _logger.error("Source file missing during verification", extra={"file": filename})
            continue

        actual_hash = digest_file(file_path)
        checked += 1

        if actual_hash != expected_hash.lower():
            mismatches.append(filename)
            _logger.error(
                "Checksum mismatch",
                extra={
                    "file": filename,
                    "expected": expected_hash[:16] + "...",
                    "actual": actual_hash[:16] + "...",
                },
            )

    is_valid = not mismatches and not missing_files

    if is_valid:
        _logger.info("All recipe checksums verified", extra={"checked_count": checked})
    else:
        _logger.error(
            "Recipe checksum verification failed",
            extra={"mismatches": len(mismatches), "missing": len(missing_files)},
        )

    return VerificationResult(
        is_valid=is_valid,
        checked_count=checked,
        mismatches=mismatches,
        missing_files=missing_files,
    )
