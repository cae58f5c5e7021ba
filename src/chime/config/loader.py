"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chime.config.models import ChimeConfig, ConfigError
from chime.config.paths import get_config_path

# (section, key, env var); section None means top level.
ENV_OVERRIDES: list[tuple[str | None, str, str]] = [
    (None, "timezone", "CHIME_TIMEZONE"),
    ("server", "host", "CHIME_HOST"),
    ("server", "port", "CHIME_PORT"),
    ("database", "url", "CHIME_DATABASE_URL"),
    ("logging", "level", "CHIME_LOG_LEVEL"),
]


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.chime/config.toml (or CHIME_HOME)
        Path("/etc/chime/config.toml"),  # System-wide
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Environment variables win over file values."""
    for section, key, env_var in ENV_OVERRIDES:
        value = os.environ.get(env_var)
        if not value:
            continue
        target = config if section is None else config.setdefault(section, {})
        target[key] = value.upper() if key == "level" else value
    return config


def _find_config_path(path: Path | None) -> Path | None:
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path

    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None) -> ChimeConfig:
    """Load configuration from TOML.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to defaults when none exists.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the file is not valid TOML or fails validation
            (including malformed cron expressions).
    """
    config_path = _find_config_path(path)

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _apply_env_overrides(raw_config)

    try:
        return ChimeConfig.model_validate(raw_config)
    except ValidationError as e:
        source = config_path or "defaults"
        raise ConfigError(f"Invalid configuration ({source}):\n{e}") from e


def get_default_config() -> ChimeConfig:
    """Get a default configuration for development/testing."""
    return ChimeConfig()
