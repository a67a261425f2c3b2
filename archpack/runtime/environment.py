# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment checks for archpack.

The pipeline depends on two external programs, tar and makepkg. We check for
them up front and report clearly, rather than failing with a bare
"executable not found" halfway through a run.
"""

import platform
import shutil
import sys
from dataclasses import dataclass
from typing import NamedTuple, Optional

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 11

REQUIRED_TOOLS: tuple[str, ...] = ("tar", "makepkg")


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str
    hostname: str


@dataclass(frozen=True)
class ToolCheck:
    """Result of looking up one external program on PATH."""

    name: str
    available: bool
    path: Optional[str]


def get_python_version() -> tuple[int, int, int]:
    """Return the current Python version as a (major, minor, micro) tuple."""
    return sys.version_info[:3]


def check_minimum_python() -> None:
    """
    Verify we're running Python 3.11+.

    Raises:
        RuntimeError: If Python version is below 3.11.
    """
    major, minor, _ = get_python_version()
    if major < MINIMUM_PYTHON_MAJOR or (
        major == MINIMUM_PYTHON_MAJOR and minor < MINIMUM_PYTHON_MINOR
    ):
        raise RuntimeError(
            f"archpack requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"but you're running {major}.{minor}. Please upgrade."
        )


def check_tool(name: str) -> ToolCheck:
    """Look up an executable on PATH."""
    path = shutil.which(name)
    return ToolCheck(name=name, available=path is not None, path=path)


def check_required_tools(tools: tuple[str, ...] = REQUIRED_TOOLS) -> list[ToolCheck]:
    return [check_tool(name) for name in tools]


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
    )
