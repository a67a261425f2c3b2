# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logging for archpack.

Every logger in the package hangs off the `archpack` logger. Modules call
`get_logger(__name__)` and never attach handlers of their own; their records
propagate up to `archpack`, where `configure_logging` installs the handlers:
one on stdout, and one on the log file when a file is configured. The level
set there applies to the whole tree, so `--log-level DEBUG` also shows the
pipeline's per-stage debug lines.

One record is one line of JSON:
  {"ts": "2026-...", "level": "INFO", "module": "archpack.release.archive.archiver",
   "msg": "Archive created", "archive": "archpkg/tarcloud-1.2.3.tar.gz", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "archpack"

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Attributes of a bare LogRecord; anything beyond these arrived through `extra`.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Serializes a record as `ts`, `level`, `module` and `msg`, followed by the
    `extra` context of the call and, for exceptions, the traceback as `exc`.
    Values JSON can't represent (paths, enums) are written with str().
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _level_number(level_name: str) -> int:
    upper = level_name.upper()
    if upper not in LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(LOG_LEVELS)}"
        )
    return logging.getLevelName(upper)


def configure_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Install the JSON handlers on the `archpack` logger and set its level.

    May be called repeatedly. The CLI calls it once with the command-line
    level before the config is read, and bootstrap calls it again once the
    log file is known. Previous handlers are closed and replaced.

    Raises:
        ValueError: For an unknown level name.
    """
    level = _level_number(log_level)
    root = logging.getLogger(ROOT_LOGGER_NAME)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream=sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    formatter = JsonFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(level)
    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Logger for one module, typically `get_logger(__name__)`.

    Names outside the `archpack` tree are nested under it. The first call
    installs default handlers (INFO, stdout) if nothing configured logging yet.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        configure_logging()
    return logging.getLogger(name)
