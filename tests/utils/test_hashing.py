# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for SHA256 hashing utilities.
"""

import hashlib
from pathlib import Path

import pytest

from archpack.utils.hashing import (
    HASH_BUFFER_SIZE,
    SHA256_HEX_LENGTH,
    compute_sha256,
    compute_sha256_bytes,
)


class TestComputeSha256:
    def test_known_value(self) -> None:
        assert compute_sha256_bytes(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_file_and_bytes_agree_across_chunk_boundary(self, tmp_path: Path) -> None:
        data = b"x" * (HASH_BUFFER_SIZE * 2 + 17)
        path = tmp_path / "big.tar.gz"
        path.write_bytes(data)
        assert compute_sha256(path) == compute_sha256_bytes(data)
        assert compute_sha256(path) == hashlib.sha256(data).hexdigest()

    def test_digest_is_lowercase_hex(self) -> None:
        value = compute_sha256_bytes(b"tarcloud")
        assert len(value) == SHA256_HEX_LENGTH
        assert value == value.lower()
        int(value, 16)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            compute_sha256(tmp_path / "missing")
