# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing utilities for archpack.

makepkg checks every entry of a PKGBUILD's `source` array against the
parallel `sha256sums` array before it builds anything, so every digest we
emit must be the lowercase hex SHA256 of the exact bytes on disk.
"""

import hashlib
from pathlib import Path

HASH_BUFFER_SIZE = 65536  # 64 KiB
SHA256_HEX_LENGTH = 64


def compute_sha256(file_path: Path) -> str:
    """
    Compute the SHA256 hex digest of a file.

    Reads the file in 64 KiB chunks so a large source archive never has to
    sit in memory as a whole.

    Args:
        file_path: Path to the file to hash.

    Returns:
        Lowercase hex string of the SHA256 digest.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(HASH_BUFFER_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def compute_sha256_bytes(data: bytes) -> str:
    """Compute the lowercase SHA256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()
