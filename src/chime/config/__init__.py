"""Configuration module."""

from chime.config.loader import get_default_config, load_config
from chime.config.models import (
    ChimeConfig,
    ConfigError,
    DatabaseConfig,
    LoggingConfig,
    ServerConfig,
    TimerConfig,
)
from chime.config.paths import (
    get_chime_home,
    get_config_path,
    get_database_path,
    get_logs_path,
)

__all__ = [
    "ChimeConfig",
    "ConfigError",
    "DatabaseConfig",
    "LoggingConfig",
    "ServerConfig",
    "TimerConfig",
    "get_chime_home",
    "get_config_path",
    "get_database_path",
    "get_default_config",
    "get_logs_path",
    "load_config",
]
