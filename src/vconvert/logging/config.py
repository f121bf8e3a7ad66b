"""Root logger setup for a vconvert run."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from vconvert.logging.context import FileContextFilter
from vconvert.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from vconvert.config.models import LoggingConfig

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(file_tag)s%(message)s"


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _open_log_file(config: LoggingConfig) -> RotatingFileHandler:
    path = Path(config.file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )


def configure_logging(config: LoggingConfig) -> None:
    """Point the root logger at the log file and/or stderr.

    The file gets a rotating handler. Stderr is used when ``include_stderr``
    is set, when no file is configured, or when the file cannot be opened;
    the last case is logged as a warning once handlers are in place.
    """
    level = logging.getLevelName(config.level.upper())
    formatter = _formatter(config)
    context_filter = FileContextFilter()

    handlers: list[logging.Handler] = []
    file_error: OSError | None = None
    if config.file:
        try:
            handlers.append(_open_log_file(config))
        except OSError as e:
            file_error = e
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    if file_error is not None:
        logger.warning(
            "Could not open log file %s (%s), logging to stderr",
            config.file,
            file_error,
        )
