"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (applied by the caller on top of the returned config)
2. Environment variables (VCONVERT_*)
3. Config file (~/.vconvert/config.toml)
4. Default values

Environment variables:
- VCONVERT_DATA_DIR: Data directory (overrides ~/.vconvert/)
- VCONVERT_CONFIG_PATH: Path to config file
- VCONVERT_DATABASE_PATH: Path to the catalog file
- VCONVERT_FFMPEG_PATH: Path to ffmpeg executable
- VCONVERT_FFPROBE_PATH: Path to ffprobe executable
- VCONVERT_SCAN_WORKERS: Probe worker count
- VCONVERT_LOG_LEVEL: Log level
- VCONVERT_LOG_FILE: Log file path
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from vconvert.config.env import EnvReader
from vconvert.config.models import (
    AppConfig,
    ConvertConfig,
    LoggingConfig,
    ScanConfig,
    ToolsConfig,
)
from vconvert.config.schema import ConfigFileModel
from vconvert.exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".vconvert"
CONFIG_FILENAME = "config.toml"


def get_data_dir(env_reader: EnvReader | None = None) -> Path:
    """Get the vconvert data directory.

    Holds the catalog (vconvert.db), the config file and the log directory.
    Can be overridden by the VCONVERT_DATA_DIR environment variable.

    Returns:
        Path to the data directory (~/.vconvert/ by default).
    """
    reader = env_reader or EnvReader()
    return reader.get_path("VCONVERT_DATA_DIR") or DEFAULT_CONFIG_DIR


def get_default_config_path(env_reader: EnvReader | None = None) -> Path:
    """Get the config file path, honoring VCONVERT_CONFIG_PATH."""
    reader = env_reader or EnvReader()
    env_path = reader.get_path("VCONVERT_CONFIG_PATH")
    if env_path is not None:
        return env_path
    return get_data_dir(reader) / CONFIG_FILENAME


def load_config_file(path: Path) -> ConfigFileModel:
    """Load and validate the TOML config file.

    Args:
        path: Config file location. A missing file yields all defaults.

    Returns:
        Validated file model.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", path)
        return ConfigFileModel()
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    try:
        return ConfigFileModel.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def merge_patterns(*groups: list[str] | tuple[str, ...] | None) -> list[str]:
    """Merge pattern lists, dropping duplicates and keeping first-seen order."""
    merged: list[str] = []
    for group in groups:
        for pattern in group or ():
            if pattern not in merged:
                merged.append(pattern)
    return merged


def get_config(
    config_path: Path | None = None,
    database_path: Path | None = None,
    env_reader: EnvReader | None = None,
) -> AppConfig:
    """Build the merged configuration (file < env < explicit arguments).

    Args:
        config_path: Explicit config file (overrides VCONVERT_CONFIG_PATH).
        database_path: Explicit catalog path (overrides env and file).
        env_reader: Optional EnvReader for testing (uses os.environ if None).

    Returns:
        AppConfig with every section resolved.

    Raises:
        ConfigError: If the config file is invalid.
    """
    reader = env_reader or EnvReader()
    data_dir = get_data_dir(reader)
    resolved_config_path = config_path or get_default_config_path(reader)
    file_model = load_config_file(resolved_config_path)

    vc = file_model.video_convert
    convert = ConvertConfig(
        **{
            name: value
            for name, value in vc.model_dump().items()
            if value is not None
        }
    )
    if convert.encoder_timeout == 0:
        convert.encoder_timeout = None

    scan_defaults = ScanConfig()
    scan = ScanConfig(
        workers=reader.get_int(
            "VCONVERT_SCAN_WORKERS", file_model.scan.workers or scan_defaults.workers
        )
        or scan_defaults.workers,
        probe_timeout=file_model.scan.probe_timeout or scan_defaults.probe_timeout,
    )

    tools = ToolsConfig(
        ffmpeg=reader.get_path("VCONVERT_FFMPEG_PATH")
        or _optional_path(file_model.tools.ffmpeg),
        ffprobe=reader.get_path("VCONVERT_FFPROBE_PATH")
        or _optional_path(file_model.tools.ffprobe),
    )

    log_section = file_model.logging
    log_defaults = LoggingConfig()
    try:
        logging_config = LoggingConfig(
            level=reader.get_str("VCONVERT_LOG_LEVEL")
            or log_section.level
            or log_defaults.level,
            file=reader.get_path("VCONVERT_LOG_FILE")
            or _optional_path(log_section.file),
            format=log_section.format or log_defaults.format,
            include_stderr=(
                log_section.include_stderr
                if log_section.include_stderr is not None
                else log_defaults.include_stderr
            ),
            max_bytes=log_section.max_bytes or log_defaults.max_bytes,
            backup_count=(
                log_section.backup_count
                if log_section.backup_count is not None
                else log_defaults.backup_count
            ),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid [logging] configuration: {e}") from e

    db_path = (
        database_path
        or reader.get_path("VCONVERT_DATABASE_PATH")
        or _optional_path(file_model.paths.database)
        or data_dir / "vconvert.db"
    )

    return AppConfig(
        data_dir=data_dir,
        database_path=db_path,
        config_path=resolved_config_path,
        tools=tools,
        scan=scan,
        convert=convert,
        logging=logging_config,
    )

