# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the external process wrapper.
"""

import sys
from pathlib import Path

from archpack.utils.process import NO_EXIT_CODE, run_process


class TestRunProcess:
    def test_captures_output_and_exit_code(self, tmp_path: Path) -> None:
        result = run_process(
            [sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err'); sys.exit(3)"],
            cwd=tmp_path,
        )
        assert result.exit_code == 3
        assert not result.success
        assert result.stdout.strip() == "out"
        assert result.stderr == "err"
        assert result.elapsed_seconds >= 0

    def test_success(self, tmp_path: Path) -> None:
        result = run_process([sys.executable, "-c", "pass"], cwd=tmp_path)
        assert result.success
        assert result.command[0] == sys.executable

    def test_missing_executable_is_reported_not_raised(self, tmp_path: Path) -> None:
        result = run_process(["archpack-definitely-missing"], cwd=tmp_path)
        assert result.exit_code == NO_EXIT_CODE
        assert "not found" in result.stderr

    def test_timeout_is_reported_not_raised(self, tmp_path: Path) -> None:
        result = run_process(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            cwd=tmp_path,
            timeout_seconds=0.2,
        )
        assert result.exit_code == NO_EXIT_CODE
        assert "timed out" in result.stderr

    def test_diagnostic_tail_prefers_stderr(self, tmp_path: Path) -> None:
        script = "import sys; print('noise'); sys.stderr.write('\\n'.join(str(i) for i in range(30)))"
        result = run_process([sys.executable, "-c", script], cwd=tmp_path)
        tail = result.diagnostic_tail(max_lines=3)
        assert tail == "27\n28\n29"

    def test_diagnostic_tail_falls_back_to_stdout(self, tmp_path: Path) -> None:
        result = run_process([sys.executable, "-c", "print('only stdout')"], cwd=tmp_path)
        assert result.diagnostic_tail() == "only stdout"
