"""Pydantic models validating the raw TOML configuration file."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vconvert.core.patterns import pattern_errors
from vconvert.domain import SortKey


class VideoConvertSection(BaseModel):
    """Pydantic model for the ``[video_convert]`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    convert_all_types: bool | None = None
    convert_other_types: bool | None = None
    extensions: list[str] | None = None
    bitrate: int | None = Field(default=None, ge=0)
    max_bitrate: int | None = Field(default=None, ge=0)
    min_duration: float | None = Field(default=None, ge=0)
    max_duration: float | None = Field(default=None, ge=0)
    count: int | None = Field(default=None, ge=1)
    sort: str | None = None
    display_limit: int | None = Field(default=None, ge=0)
    delete: bool | None = None
    overwrite: bool | None = None
    recurse: bool | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None
    verbose: bool | None = None
    retry_failed: bool | None = None
    hardware_accel: bool | None = None
    encoder_timeout: float | None = Field(default=None, ge=0)

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, v: str | None) -> str | None:
        """Validate the sort order name."""
        if v is not None:
            SortKey.parse(v)
        return v

    @field_validator("include", "exclude")
    @classmethod
    def validate_patterns(cls, v: list[str] | None) -> list[str] | None:
        """Reject patterns the scanner could not match with."""
        errors = pattern_errors(v)
        if errors:
            raise ValueError("; ".join(errors))
        return v

    @field_validator("extensions")
    @classmethod
    def casefold_extensions(cls, v: list[str] | None) -> list[str] | None:
        """Normalize extensions to lowercase without leading dots."""
        if v is None:
            return None
        return [ext.strip().lower().lstrip(".") for ext in v if ext.strip()]


class ScanSection(BaseModel):
    """Pydantic model for the ``[scan]`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    workers: int | None = Field(default=None, ge=1, le=64)
    probe_timeout: float | None = Field(default=None, gt=0)


class ToolsSection(BaseModel):
    """Pydantic model for the ``[tools]`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ffmpeg: str | None = None
    ffprobe: str | None = None


class LoggingSection(BaseModel):
    """Pydantic model for the ``[logging]`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    level: str | None = None
    file: str | None = None
    format: str | None = None
    include_stderr: bool | None = None
    max_bytes: int | None = Field(default=None, gt=0)
    backup_count: int | None = Field(default=None, ge=0)


class PathsSection(BaseModel):
    """Pydantic model for the ``[paths]`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    database: str | None = None


class ConfigFileModel(BaseModel):
    """Top-level configuration file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    video_convert: VideoConvertSection = Field(default_factory=VideoConvertSection)
    scan: ScanSection = Field(default_factory=ScanSection)
    tools: ToolsSection = Field(default_factory=ToolsSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)
    paths: PathsSection = Field(default_factory=PathsSection)
