"""Configuration data models for vconvert.

These are the resolved, typed settings after the config file, environment
and CLI have been merged. Validation of the raw file happens in
``vconvert.config.schema``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class LoggingConfig:
    """Logging output settings."""

    level: str = "info"
    file: Path | None = None
    format: str = "text"  # "text" or "json"
    include_stderr: bool = True
    max_bytes: int = 10_485_760  # 10 MB
    backup_count: int = 5

    def __post_init__(self) -> None:
        if self.level.casefold() not in {"debug", "info", "warning", "error"}:
            raise ValueError(
                f"Invalid log level '{self.level}'. "
                "Must be one of: debug, info, warning, error"
            )
        if self.format.casefold() not in {"text", "json"}:
            raise ValueError(
                f"Invalid log format '{self.format}'. Must be 'text' or 'json'"
            )
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {self.max_bytes}")
        if self.backup_count < 0:
            raise ValueError(
                f"backup_count must be non-negative, got {self.backup_count}"
            )


@dataclass
class ToolsConfig:
    """Explicit paths to external tools; None means look them up on PATH."""

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class ScanConfig:
    """Scan phase settings."""

    workers: int = 4
    probe_timeout: float = 60.0


@dataclass
class ConvertConfig:
    """Defaults for selection and conversion, from ``[video_convert]``."""

    convert_all_types: bool = False
    convert_other_types: bool = False
    extensions: list[str] = field(default_factory=list)
    bitrate: int | None = 8000
    max_bitrate: int | None = None
    min_duration: float | None = None
    max_duration: float | None = None
    count: int | None = None
    sort: str = "name"
    display_limit: int = 100  # 0 means no limit
    delete: bool = False
    overwrite: bool = False
    recurse: bool = False
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    verbose: bool = False
    retry_failed: bool = False
    hardware_accel: bool = True
    encoder_timeout: float | None = None  # None means wait indefinitely


@dataclass
class AppConfig:
    """Fully merged configuration."""

    data_dir: Path
    database_path: Path
    config_path: Path
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    convert: ConvertConfig = field(default_factory=ConvertConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
