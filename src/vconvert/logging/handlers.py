"""JSON lines output for the vconvert log file."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Per-file fields callers may attach with ``extra=``; anything else is ignored.
EVENT_FIELDS: tuple[str, ...] = (
    "status",
    "quality",
    "source_bytes",
    "output_bytes",
    "returncode",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Always present: ``timestamp`` (UTC), ``level``, ``message``. When the
    record was logged inside ``file_context()`` it also carries ``file`` and
    ``action``; conversion events add any of ``EVENT_FIELDS`` they set.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        file_path = getattr(record, "file_path", None)
        if file_path:
            entry["file"] = file_path
        action = getattr(record, "action", None)
        if action:
            entry["action"] = action
        for name in EVENT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
