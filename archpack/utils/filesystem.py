# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Safe filesystem operations for archpack.

Generated artifacts are written atomically: content goes to a temp file in
the same directory as the target and is then renamed over it. Rename on the
same filesystem is atomic on POSIX, so the output directory never contains a
half-written unit file or PKGBUILD that makepkg could pick up.
"""

import shutil
import tempfile
from pathlib import Path

_TEMP_PREFIX = ".archpack_tmp_"


def atomic_write_bytes(target_path: Path, data: bytes) -> None:
    """
    Write binary data to a file atomically.

    We write bytes rather than text so that the content hashed in memory and
    the content on disk are the same object: no newline translation, no
    encoder in between.

    Args:
        target_path: Where the final file should end up.
        data: The raw bytes to write.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # delete=False because the file has to survive closing so we can rename it.
    temp_fd = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=str(target_path.parent),
        prefix=_TEMP_PREFIX,
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(data)
        temp_fd.flush()
        temp_fd.close()
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def reset_directory(directory: Path) -> bool:
    """
    Remove a directory tree if it exists. Returns whether anything was removed.

    Used for the pipeline's output directory only, which a single run owns
    exclusively.
    """
    if directory.is_dir():
        shutil.rmtree(directory)
        return True
    return False


def safe_delete(file_path: Path) -> bool:
    """
    Delete a file if it exists. Returns whether anything was actually deleted.

    Raises:
        OSError: If the file exists but can't be deleted.
    """
    if file_path.exists():
        file_path.unlink()
        return True
    return False
