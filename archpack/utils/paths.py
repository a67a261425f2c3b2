# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Path utilities for archpack.

Source paths in the package config are relative to the source checkout.
They must stay inside it: a `../` entry would pull files from outside the
project into the release archive.
"""

from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it doesn't exist. Returns the path for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_path_within_root(target: Path, root: Path) -> Path:
    """
    Make sure a path doesn't escape the given root directory.

    Both paths are resolved to absolute form before comparing, so tricks like
    ../../etc/passwd get caught.

    Args:
        target: The path to validate.
        root: The directory the path has to stay inside.

    Returns:
        The resolved absolute path if it's safe.

    Raises:
        ValueError: If the path escapes the root.
    """
    resolved_target = target.resolve()
    resolved_root = root.resolve()

    if not resolved_target.is_relative_to(resolved_root):
        raise ValueError(
            f"Path '{target}' resolves to '{resolved_target}' which is outside "
            f"'{resolved_root}'. This is not allowed."
        )

    return resolved_target
