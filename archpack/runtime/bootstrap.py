# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for archpack.

One-time setup before a command does real work:
  1. Validate the Python version
  2. Configure package-wide logging (level and optional log file)
  3. Log where we're running

Every CLI command that loads a config goes through this first.
"""

from pathlib import Path
from typing import Optional

from archpack.config.schema import GlobalConfig
from archpack.logging.logger import configure_logging, get_logger
from archpack.runtime.environment import check_minimum_python, get_system_info


def bootstrap(config: GlobalConfig, log_level: Optional[str] = None) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
        log_level: Level given on the command line; wins over config.log_level.
    """
    check_minimum_python()

    log_file = Path(config.log_file) if config.log_file is not None else None
    configure_logging(log_level or config.log_level, log_file)

    logger = get_logger("archpack.runtime")
    system_info = get_system_info()
    logger.info(
        "archpack bootstrap complete",
        extra={
            "config_version": config.config_version,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
        },
    )
