# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader — reads YAML from disk and produces a validated, frozen ArchpackConfig.

The loading pipeline is linear:
  1. Read raw text from the file
  2. Parse as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Return the frozen config object

Any failure stops here with a clear error. There is no fallback to defaults
once a file was given: a broken config must not produce a package.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from archpack.config.exceptions import ConfigLoadError, ConfigValidationError
from archpack.config.schema import ArchpackConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    # An empty file is a valid "use all defaults" config.
    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> ArchpackConfig:
    """
    Load, validate, and freeze a config file into an ArchpackConfig object.

    Args:
        config_path: Path to a YAML config file.

    Returns:
        A fully validated, frozen ArchpackConfig instance.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (wrong types, unknown keys, bad variant).
    """
    raw_data = _read_yaml_file(config_path)

    try:
        config = ArchpackConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err

    return config


def default_config() -> ArchpackConfig:
    """The configuration used when no --config is given."""
    return ArchpackConfig()
