"""Configuration for vconvert.

Usage:
    from vconvert.config import get_config
    config = get_config()
    config.convert.bitrate
"""

from vconvert.config.env import EnvReader
from vconvert.config.loader import (
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
    merge_patterns,
)
from vconvert.config.models import (
    AppConfig,
    ConvertConfig,
    LoggingConfig,
    ScanConfig,
    ToolsConfig,
)

__all__ = [
    "AppConfig",
    "ConvertConfig",
    "EnvReader",
    "LoggingConfig",
    "ScanConfig",
    "ToolsConfig",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
    "merge_patterns",
]
