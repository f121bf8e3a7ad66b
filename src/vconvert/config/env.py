"""Environment variable reader with dependency injection support."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "VCONVERT_"


class EnvReader:
    """Environment variable reader with type conversion.

    Accepts an optional mapping so tests can inject an environment without
    touching ``os.environ``.

    Example:
        reader = EnvReader(env={"VCONVERT_SCAN_WORKERS": "8"})
        reader.get_int("VCONVERT_SCAN_WORKERS", 4)  # Returns 8
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Get a string, or ``default`` when unset or empty."""
        value = self._env.get(var)
        if not value:
            return default
        return value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Get an integer; invalid values log a warning and use ``default``."""
        value = self._env.get(var)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s", var, value)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Get a boolean from 1/0, true/false, yes/no, on/off."""
        value = self._env.get(var)
        if value is None:
            return default
        lowered = value.strip().casefold()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        logger.warning("Invalid boolean value for %s: %s", var, value)
        return default

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Get a path with tilde expansion."""
        value = self.get_str(var)
        if value is None:
            return default
        return Path(value).expanduser()
