"""Per-file logging context.

Probe workers and the converter tag their log lines with the file they are
working on and, once it is known, the action being taken on it. The tag
travels in a contextvar, so each pool thread sees only its own file.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator


@dataclass(frozen=True)
class FileContext:
    path: str
    action: str | None = None

    @property
    def tag(self) -> str:
        name = Path(self.path).name
        if self.action:
            return f"[{name} {self.action}] "
        return f"[{name}] "


_current: contextvars.ContextVar[FileContext | None] = contextvars.ContextVar(
    "vconvert_file", default=None
)


@contextmanager
def file_context(
    file_path: Path | str, action: str | None = None
) -> Generator[None, None, None]:
    """Tag log records emitted inside the block with ``file_path``.

    Example:
        with file_context("/videos/movie.mkv", action="transcode"):
            logger.info("Starting")  # text: "[movie.mkv transcode] Starting"
    """
    token = _current.set(FileContext(str(file_path), action))
    try:
        yield
    finally:
        _current.reset(token)


def get_file_context() -> FileContext | None:
    """Return the innermost active file context, or None."""
    return _current.get()


class FileContextFilter(logging.Filter):
    """Copy the current file context onto each log record.

    Sets ``file_path`` and ``action`` (unless the call passed its own
    ``action`` via ``extra``) plus ``file_tag``, the text-format prefix.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current = get_file_context()
        record.file_path = current.path if current else None
        if getattr(record, "action", None) is None:
            record.action = current.action if current else None
        record.file_tag = current.tag if current else ""
        return True
