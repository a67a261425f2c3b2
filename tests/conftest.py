# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for archpack tests.

The central fixture is `source_tree`: a minimal Rust service checkout with
the four source paths the default config archives. Builders are stood in for
by small Python scripts run through sys.executable, so the tests never need
makepkg.
"""

import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Callable

import pytest

from archpack.config.schema import ArchpackConfig
from archpack.logging.logger import ROOT_LOGGER_NAME

CARGO_TOML = textwrap.dedent("""\
    [package]
    name = "tarcloud"
    version = "1.2.3"
    edition = "2021"

    [dependencies]
    serde = { version = "1.0", features = ["derive"] }
    toml = "0.8"
""")

# Stand-in for makepkg: reads pkgname/pkgver/pkgrel from the PKGBUILD in the
# working directory and drops an empty package file named the way makepkg would.
FAKE_MAKEPKG = textwrap.dedent("""\
    import re
    import sys
    from pathlib import Path

    recipe = Path("PKGBUILD").read_text(encoding="utf-8")
    fields = dict(re.findall(r"^(pkgname|pkgver|pkgrel)=(\\S+)$", recipe, re.MULTILINE))
    package = f"{fields['pkgname']}-{fields['pkgver']}-{fields['pkgrel']}-x86_64.pkg.tar.zst"
    Path(package).write_bytes(b"package")
    Path("builder-args.txt").write_text(" ".join(sys.argv[1:]), encoding="utf-8")
""")


@pytest.fixture()
def source_tree(tmp_path: Path) -> Path:
    """A checkout with Cargo.toml, src/, templates/ and static/."""
    root = tmp_path / "tarcloud"
    (root / "src").mkdir(parents=True)
    (root / "templates").mkdir()
    (root / "static").mkdir()

    (root / "Cargo.toml").write_text(CARGO_TOML, encoding="utf-8")
    (root / "src" / "main.rs").write_text('fn main() { println!("tarcloud"); }\n', encoding="utf-8")
    (root / "templates" / "index.html").write_text("<html></html>\n", encoding="utf-8")
    (root / "static" / "main.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    return root


@pytest.fixture()
def fake_builder(tmp_path: Path) -> list[str]:
    """Builder command that succeeds and produces a package file."""
    script = tmp_path / "fake_makepkg.py"
    script.write_text(FAKE_MAKEPKG, encoding="utf-8")
    return [sys.executable, str(script), "-f"]


@pytest.fixture()
def failing_builder() -> list[str]:
    """Builder command that exits with status 7 and an error on stderr."""
    return [
        sys.executable,
        "-c",
        "import sys; sys.stderr.write('==> ERROR: A failure occurred in build().\\n'); sys.exit(7)",
    ]


@pytest.fixture()
def make_config() -> Callable[..., ArchpackConfig]:
    """
    Factory for configs. Keyword arguments are section dicts merged over the
    defaults, e.g. make_config(package={"release": 42}).
    """

    def _make(**sections: Any) -> ArchpackConfig:
        return ArchpackConfig.model_validate(sections)

    return _make


@pytest.fixture()
def write_config_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML text to a config file and return its path."""

    def _write(content: str) -> Path:
        config_file = tmp_path / "archpack.yaml"
        config_file.write_text(textwrap.dedent(content), encoding="utf-8")
        return config_file

    return _write


@pytest.fixture()
def restore_package_logger() -> None:
    """
    Tests that reconfigure the `archpack` logger (against their own captured
    stdout or a log file) get the previous handlers and level back afterwards.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield  # type: ignore[misc]
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in saved_handlers:
            handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
