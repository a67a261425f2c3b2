# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the archpack CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code. No print() calls; everything goes through the structured logger.
"""

import argparse
import logging
from pathlib import Path

from pydantic import ValidationError

from archpack.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    VALIDATION_ERROR,
)
from archpack.config.exceptions import ConfigError, ConfigValidationError
from archpack.config.loader import default_config, load_config
from archpack.config.schema import ArchpackConfig, PackageConfig
from archpack.logging.logger import configure_logging, get_logger
from archpack.release.exceptions import (
    BuilderInvocationError,
    ManifestParseError,
    PackagingError,
)
from archpack.runtime.bootstrap import bootstrap

_MAX_EXIT_STATUS = 255
DEFAULT_LOG_LEVEL = "INFO"


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, ArchpackConfig | None, logging.Logger]:
    """
    The shared setup every command needs: load config, run bootstrap, apply
    command-line overrides.

    Returns a tuple of (exit_code, config, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    configure_logging(args.log_level or DEFAULT_LOG_LEVEL)
    logger = get_logger(f"archpack.cli.{command_name}")

    try:
        if args.config is not None:
            config = load_config(Path(args.config))
            bootstrap(config.global_config, log_level=args.log_level)
        else:
            config = default_config()
            logger.debug(
                "No config provided, running with defaults",
                extra={"command": command_name},
            )
        config = _apply_overrides(config, args)
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        return CONFIG_ERROR, None, logger

    return SUCCESS, config, logger


def _apply_overrides(config: ArchpackConfig, args: argparse.Namespace) -> ArchpackConfig:
    """
    Command-line flags take precedence over the config file. The merged
    package section is validated again, so a flag can't smuggle in a value
    the config file would have been rejected for.

    Raises:
        ConfigValidationError: If an override fails validation.
    """
    updates: dict[str, object] = {}
    if getattr(args, "variant", None) is not None:
        updates["variant"] = args.variant
    if getattr(args, "output_dir", None) is not None:
        updates["output_dir"] = args.output_dir
    if getattr(args, "release", None) is not None:
        updates["release"] = args.release

    if not updates:
        return config
    try:
        package = PackageConfig.model_validate({**config.package.model_dump(), **updates})
    except ValidationError as err:
        raise ConfigValidationError(f"Invalid command-line override:\n{err}") from err
    return config.model_copy(update={"package": package})


def _exit_code_for(err: PackagingError) -> int:
    if isinstance(err, ManifestParseError):
        return VALIDATION_ERROR
    if isinstance(err, BuilderInvocationError):
        status = err.exit_status
        if status is not None and 0 < status <= _MAX_EXIT_STATUS:
            return status
    return RUNTIME_ERROR


def _source_root(args: argparse.Namespace) -> Path:
    return Path(getattr(args, "source_root", None) or ".")


def _run(args: argparse.Namespace, command_name: str, invoke_builder: bool) -> int:
    exit_code, config, logger = _load_and_bootstrap(args, command_name)
    if exit_code != SUCCESS or config is None:
        return exit_code

    from archpack.release.packaging.pipeline import plan_pipeline, run_pipeline

    source_root = _source_root(args)

    try:
        if args.dry_run:
            plan = plan_pipeline(config, source_root)
            logger.info(
                "Dry run — would package",
                extra={
                    "package_name": plan.descriptor.name,
                    "version": plan.descriptor.version,
                    "release": plan.descriptor.release,
                    "variant": plan.variant.name,
                    "output_dir": str(plan.output_dir),
                    "files": plan.filenames,
                    "invoke_builder": invoke_builder,
                },
            )
            return SUCCESS

        result = run_pipeline(config, source_root, invoke_builder=invoke_builder)

    except PackagingError as err:
        logger.error(
            "Packaging failed",
            extra={
                "command": command_name,
                "error": str(err),
                "error_type": type(err).__name__,
                "stage": err.stage,
            },
        )
        return _exit_code_for(err)
    except Exception as err:
        logger.error(
            "Runtime error",
            extra={"command": command_name, "error": str(err)},
            exc_info=True,
        )
        return RUNTIME_ERROR

    logger.info(
        "Command completed",
        extra={
            "command": command_name,
            "stage": result.stage.value,
            "output_dir": result.output_dir,
            "package": result.package_path,
        },
    )
    return SUCCESS


def handle_package(args: argparse.Namespace) -> int:
    """Run the full pipeline, including the package builder."""
    return _run(args, "package", invoke_builder=True)


def handle_render(args: argparse.Namespace) -> int:
    """Write the archive, artifacts and PKGBUILD without running the builder."""
    return _run(args, "render", invoke_builder=False)


def handle_verify(args: argparse.Namespace) -> int:
    """Check a written PKGBUILD's sha256sums against the files next to it."""
    exit_code, config, logger = _load_and_bootstrap(args, "verify")
    if exit_code != SUCCESS or config is None:
        return exit_code

    from archpack.release.checksums.digest import verify_recipe

    output_dir = _source_root(args) / config.package.output_dir
    if not output_dir.is_dir():
        logger.error("Output directory not found", extra={"path": str(output_dir)})
        return VALIDATION_ERROR

    try:
        result = verify_recipe(output_dir)
    except OSError as err:
        logger.error("Verification failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR

    if not result.is_valid:
        logger.error(
            "Integrity check failed",
            extra={
                "path": str(output_dir),
                "mismatches": result.mismatches,
                "missing": result.missing_files,
                "errors": result.errors,
            },
        )
        return VALIDATION_ERROR

    logger.info(
        "Integrity check passed",
        extra={"path": str(output_dir), "checked_count": result.checked_count},
    )
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display version, environment and external tool availability."""
    configure_logging(args.log_level or DEFAULT_LOG_LEVEL)
    logger = get_logger("archpack.cli.info")

    from archpack import __version__
    from archpack.runtime.environment import check_required_tools, get_system_info

    system_info = get_system_info()
    tools = {check.name: check.path for check in check_required_tools()}

    logger.info(
        "System information",
        extra={
            "archpack_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "tools": tools,
            "config": args.config,
        },
    )
    return SUCCESS
