# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for archpack.

A single root command; every operation is a subcommand. No interactive
prompts. Global options (--config, --log-level, --dry-run) are inherited by
every subcommand through argparse's parent parser mechanism, and the
packaging options by the subcommands that package.

Usage:
    archpack package --config archpack.yaml
    archpack render --variant dynamic-user --release 42
    archpack verify --output-dir archpkg
    archpack info
"""

import argparse
import sys

from archpack.cli.commands import (
    handle_info,
    handle_package,
    handle_render,
    handle_verify,
)
from archpack.cli.exit_codes import USER_ERROR
from archpack.config.schema import LOG_LEVEL_NAMES, VARIANT_NAMES


def _build_global_parser(for_subcommand: bool = False) -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so its help text doesn't collide with the subcommand
    parsers that inherit it.

    Global options are accepted before and after the subcommand. The copy
    inherited by subcommands uses SUPPRESS defaults: argparse copies every
    subparser default over the root namespace, which would otherwise reset
    `archpack --log-level DEBUG package` back to the default level.
    """

    def default(value: object) -> object:
        return argparse.SUPPRESS if for_subcommand else value

    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=default(None),
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str.upper,
        default=default(None),
        dest="log_level",
        choices=list(LOG_LEVEL_NAMES),
        help="Set the logging verbosity level (default: global.log_level, else INFO).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=default(False),
        dest="dry_run",
        help="Read the manifest and report what would be written, without writing.",
    )
    return parent


def _build_package_parser() -> argparse.ArgumentParser:
    """Options shared by the commands that work on a source checkout."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--source-root",
        type=str,
        default=".",
        dest="source_root",
        help="Checkout containing the manifest and source paths.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        dest="output_dir",
        help="Output directory, relative to the source root (overrides config).",
    )
    parser.add_argument(
        "--variant",
        type=str,
        default=None,
        choices=sorted(VARIANT_NAMES),
        help="Deployment variant (overrides config).",
    )
    parser.add_argument(
        "--release",
        type=int,
        default=None,
        help="Fixed pkgrel (overrides config; default derives one from the clock).",
    )
    return parser


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
    package_parent: argparse.ArgumentParser,
) -> None:
    """Register all subcommands with their handler functions."""
    commands = [
        ("package", "Build the archive, artifacts and PKGBUILD, then run makepkg.", handle_package, True),
        ("render", "Write the archive, artifacts and PKGBUILD without running makepkg.", handle_render, True),
        ("verify", "Check PKGBUILD sha256sums against the output directory.", handle_verify, True),
        ("info", "Display environment and tool availability.", handle_info, False),
    ]

    for name, help_text, handler, takes_package_options in commands:
        parents = [parent, package_parent] if takes_package_options else [parent]
        parser = subparsers.add_parser(name, parents=parents, help=help_text)
        parser.set_defaults(func=handler)


def main() -> None:
    """
    Main CLI entrypoint. pyproject.toml's [project.scripts] points here.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    parent = _build_global_parser()
    subcommand_parent = _build_global_parser(for_subcommand=True)
    package_parent = _build_package_parser()

    root_parser = argparse.ArgumentParser(
        prog="archpack",
        description="archpack — package a service release for makepkg.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, subcommand_parent, package_parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
