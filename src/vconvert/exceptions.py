"""Exception hierarchy for vconvert.

Fatal errors (ScanRootError, CatalogError, ConfigError, ToolNotFoundError)
stop the run with a non-zero exit code. ProbeError and ConversionError are
per-file and are accumulated into the run summary instead.
"""

from __future__ import annotations

from pathlib import Path


class VConvertError(Exception):
    """Base class for all vconvert errors."""

    pass


class ScanRootError(VConvertError, OSError):
    """Raised when a scan root is missing or cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot scan {path}: {reason}")


class ProbeError(VConvertError):
    """Raised when metadata cannot be extracted from a media file."""

    pass


class ConversionError(VConvertError):
    """Raised when an encoder run or its output verification fails.

    Attributes:
        path: Source file the conversion was attempted for.
        reason: Short human-readable failure reason.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class CatalogError(VConvertError):
    """Raised when the catalog store is unreadable, corrupt or inconsistent."""

    pass


class ConfigError(VConvertError):
    """Raised when the configuration file or a CLI value is invalid."""

    pass


class ToolNotFoundError(VConvertError):
    """Raised when a required external tool (ffmpeg, ffprobe) is unavailable."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(
            f"{tool} is not installed or not in PATH. "
            f"Install ffmpeg, or set VCONVERT_{tool.upper()}_PATH or "
            f"[tools] {tool} in the config file."
        )
