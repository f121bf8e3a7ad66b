"""Logging setup and per-file context for vconvert."""

from vconvert.logging.config import configure_logging
from vconvert.logging.context import FileContextFilter, file_context
from vconvert.logging.handlers import JSONFormatter

__all__ = [
    "FileContextFilter",
    "JSONFormatter",
    "configure_logging",
    "file_context",
]
