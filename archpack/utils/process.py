# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Narrow wrapper around external process invocation.

The pipeline shells out twice: `tar` to build the source archive and
`makepkg` to build the package. Both go through `run_process`, which always
returns a ProcessResult instead of raising on a bad exit code. Callers decide
what a failure means and raise their own typed error, so every external step
reports failures the same way.

No shell=True anywhere. Commands are argument lists.
"""

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from archpack.logging.logger import get_logger

logger = get_logger(__name__)

# Exit code used when the process never produced one (missing binary, timeout).
NO_EXIT_CODE = -1


@dataclass(frozen=True)
class ProcessResult:
    """What came back from running an external command."""

    command: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def diagnostic_tail(self, max_lines: int = 20) -> str:
        """Last few lines of stderr (or stdout if stderr is empty), for error messages."""
        text = self.stderr.strip() or self.stdout.strip()
        return "\n".join(text.splitlines()[-max_lines:])


def run_process(
    command: Sequence[str],
    cwd: Path,
    timeout_seconds: Optional[float] = None,
) -> ProcessResult:
    """
    Run a command to completion and capture everything it printed.

    The call blocks until the process exits. With no timeout a hung process
    hangs the run; that's acceptable for an operator-invoked build step.

    Args:
        command: Program and arguments.
        cwd: Working directory for the process.
        timeout_seconds: Optional hard limit.

    Returns:
        ProcessResult. A missing executable or a timeout is reported as
        exit_code NO_EXIT_CODE with the reason in stderr.
    """
    argv = tuple(str(part) for part in command)
    start = time.monotonic()

    try:
        completed = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            cwd=str(cwd),
            check=False,
        )
    except FileNotFoundError:
        elapsed = time.monotonic() - start
        logger.error(
            "Executable not found",
            extra={"command": argv[0], "cwd": str(cwd)},
        )
        return ProcessResult(
            command=argv,
            exit_code=NO_EXIT_CODE,
            stdout="",
            stderr=f"{argv[0]} executable not found",
            elapsed_seconds=elapsed,
        )
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start
        logger.warning(
            "Process timed out",
            extra={"command": argv[0], "timeout_seconds": timeout_seconds},
        )
        return ProcessResult(
            command=argv,
            exit_code=NO_EXIT_CODE,
            stdout="",
            stderr=f"{argv[0]} timed out after {timeout_seconds}s",
            elapsed_seconds=elapsed,
        )

    elapsed = time.monotonic() - start
    logger.debug(
        "Process finished",
        extra={
            "command": argv[0],
            "exit_code": completed.returncode,
            "elapsed_seconds": round(elapsed, 3),
            "cwd": str(cwd),
        },
    )

    return ProcessResult(
        command=argv,
        exit_code=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        elapsed_seconds=elapsed,
    )
