# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI smoke tests.

CLI tests verify:
  - commands execute
  - exit codes are correct
  - help text exists

We use subprocess to test the actual CLI entrypoint the way a user would.
This catches issues that unit tests miss, like broken imports or entrypoint
registration.
"""

import json
import subprocess
import sys
from pathlib import Path
from typing import Callable

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    """Run `archpack` with the given arguments and capture output."""
    return subprocess.run(
        [sys.executable, "-m", "archpack.cli.main", *args],
        capture_output=True,
        text=True,
        timeout=60,
        cwd=REPO_ROOT,
    )


def _config(write_config_file: Callable[[str], Path], builder_command: list[str] | None = None) -> Path:
    lines = ["package:", "  release: 42"]
    if builder_command is not None:
        lines += ["builder:", f"  command: {json.dumps(builder_command)}"]
    return write_config_file("\n".join(lines) + "\n")


class TestHelpTexts:
    """Every subcommand must have working --help output."""

    @pytest.mark.parametrize("subcommand", ["package", "render", "verify", "info"])
    def test_subcommand_help_exits_zero(self, subcommand: str) -> None:
        result = _run_cli(subcommand, "--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_package_help_lists_variants(self) -> None:
        result = _run_cli("package", "--help")
        assert "dedicated-user" in result.stdout
        assert "dynamic-user" in result.stdout

    def test_root_help_exits_with_user_error(self) -> None:
        """Running archpack with no args should show help and exit with USER_ERROR (1)."""
        result = _run_cli()
        assert result.returncode == 1


class TestSubcommandExecution:
    def test_info_runs_without_config(self) -> None:
        result = _run_cli("info")
        assert result.returncode == 0
        assert "System information" in result.stdout

    def test_render_then_verify(
        self, source_tree: Path, write_config_file: Callable[[str], Path]
    ) -> None:
        config_file = _config(write_config_file)

        rendered = _run_cli("render", "--config", str(config_file), "--source-root", str(source_tree))
        assert rendered.returncode == 0, rendered.stdout + rendered.stderr
        assert (source_tree / "archpkg" / "PKGBUILD").is_file()
        assert "pkgrel=42\n" in (source_tree / "archpkg" / "PKGBUILD").read_text(encoding="utf-8")

        verified = _run_cli("verify", "--config", str(config_file), "--source-root", str(source_tree))
        assert verified.returncode == 0

    def test_verify_detects_modified_artifact(
        self, source_tree: Path, write_config_file: Callable[[str], Path]
    ) -> None:
        config_file = _config(write_config_file)
        _run_cli("render", "--config", str(config_file), "--source-root", str(source_tree))
        (source_tree / "archpkg" / "tarcloud.toml").write_text("tampered\n", encoding="utf-8")

        result = _run_cli("verify", "--config", str(config_file), "--source-root", str(source_tree))
        assert result.returncode == 4  # VALIDATION_ERROR

    def test_command_line_flags_override_config(
        self, source_tree: Path, write_config_file: Callable[[str], Path]
    ) -> None:
        result = _run_cli(
            "render",
            "--config", str(_config(write_config_file)),
            "--source-root", str(source_tree),
            "--variant", "dynamic-user",
            "--release", "7",
            "--output-dir", "dist",
        )
        assert result.returncode == 0
        output_dir = source_tree / "dist"
        assert "pkgrel=7\n" in (output_dir / "PKGBUILD").read_text(encoding="utf-8")
        assert not (output_dir / "tarcloud.sysusers").exists()

    def test_dry_run_writes_nothing(self, source_tree: Path) -> None:
        result = _run_cli("package", "--dry-run", "--source-root", str(source_tree), "--release", "1")
        assert result.returncode == 0
        assert not (source_tree / "archpkg").exists()

    def test_package_with_builder(
        self,
        source_tree: Path,
        fake_builder: list[str],
        write_config_file: Callable[[str], Path],
    ) -> None:
        config_file = _config(write_config_file, fake_builder)
        result = _run_cli("package", "--config", str(config_file), "--source-root", str(source_tree))
        assert result.returncode == 0, result.stdout + result.stderr
        assert (source_tree / "archpkg" / "tarcloud-1.2.3-42-x86_64.pkg.tar.zst").is_file()


class TestExitCodes:
    def test_nonexistent_config_returns_config_error(self) -> None:
        result = _run_cli("render", "--config", "/nonexistent/path.yaml")
        assert result.returncode == 2  # CONFIG_ERROR

    def test_invalid_config_returns_config_error(self, write_config_file: Callable[[str], Path]) -> None:
        result = _run_cli("render", "--config", str(write_config_file("package:\n  variant: nope\n")))
        assert result.returncode == 2

    def test_missing_manifest_returns_validation_error(self, tmp_path: Path) -> None:
        result = _run_cli("render", "--source-root", str(tmp_path), "--release", "1")
        assert result.returncode == 4

    def test_missing_source_path_returns_runtime_error(
        self, source_tree: Path, write_config_file: Callable[[str], Path]
    ) -> None:
        config_file = write_config_file("package:\n  sources: [src, migrations]\n")
        result = _run_cli("render", "--config", str(config_file), "--source-root", str(source_tree))
        assert result.returncode == 3
        assert not (source_tree / "archpkg" / "PKGBUILD").exists()

    def test_builder_status_is_propagated(
        self,
        source_tree: Path,
        failing_builder: list[str],
        write_config_file: Callable[[str], Path],
    ) -> None:
        config_file = _config(write_config_file, failing_builder)
        result = _run_cli("package", "--config", str(config_file), "--source-root", str(source_tree))
        assert result.returncode == 7

    def test_verify_without_output_returns_validation_error(self, tmp_path: Path) -> None:
        result = _run_cli("verify", "--source-root", str(tmp_path))
        assert result.returncode == 4


class TestOptionPlacement:
    def test_root_level_log_level_reaches_the_pipeline(self, source_tree: Path) -> None:
        result = _run_cli(
            "--log-level", "DEBUG", "render", "--source-root", str(source_tree), "--release", "1"
        )
        assert result.returncode == 0
        records = [json.loads(line) for line in result.stdout.splitlines()]
        assert any(
            r["level"] == "DEBUG" and r["module"] == "archpack.release.packaging.pipeline"
            for r in records
        )

    def test_subcommand_log_level_quiets_the_pipeline(self, source_tree: Path) -> None:
        result = _run_cli(
            "render", "--log-level", "WARNING", "--source-root", str(source_tree), "--release", "1"
        )
        assert result.returncode == 0
        levels = {json.loads(line)["level"] for line in result.stdout.splitlines()}
        assert levels <= {"WARNING", "ERROR", "CRITICAL"}

    def test_root_level_config_survives_the_subcommand(
        self, source_tree: Path, write_config_file: Callable[[str], Path]
    ) -> None:
        result = _run_cli(
            "--config", str(_config(write_config_file)), "render", "--source-root", str(source_tree)
        )
        assert result.returncode == 0
        assert "pkgrel=42\n" in (source_tree / "archpkg" / "PKGBUILD").read_text(encoding="utf-8")

    def test_log_file_receives_pipeline_records(
        self, source_tree: Path, tmp_path: Path, write_config_file: Callable[[str], Path]
    ) -> None:
        log_file = tmp_path / "archpack.log"
        config_file = write_config_file(f"global:\n  log_file: {json.dumps(str(log_file))}\n")
        result = _run_cli(
            "render", "--config", str(config_file), "--source-root", str(source_tree), "--release", "1"
        )
        assert result.returncode == 0
        modules = {json.loads(line)["module"] for line in log_file.read_text(encoding="utf-8").splitlines()}
        assert "archpack.release.archive.archiver" in modules


class TestOutputDirSafety:
    @pytest.mark.parametrize("output_dir", [".", "../elsewhere", "/tmp"])
    def test_unsafe_output_dir_flag_is_a_config_error(self, source_tree: Path, output_dir: str) -> None:
        result = _run_cli(
            "render", "--source-root", str(source_tree), "--release", "1", "--output-dir", output_dir
        )
        assert result.returncode == 2  # CONFIG_ERROR
        assert (source_tree / "Cargo.toml").is_file()

    def test_overlapping_output_dir_keeps_sources(self, source_tree: Path) -> None:
        result = _run_cli(
            "render", "--source-root", str(source_tree), "--release", "1", "--output-dir", "src"
        )
        assert result.returncode == 3  # RUNTIME_ERROR
        assert (source_tree / "src" / "main.rs").is_file()
