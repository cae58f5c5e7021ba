"""Centralized path management for Chime.

All state (config, database, logs) lives under a single base directory,
overridable with the CHIME_HOME environment variable (default ~/.chime).
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "CHIME_HOME"


def get_system_timezone() -> str:
    """Detect system timezone, falling back to UTC.

    Resolution order:
    1. TZ environment variable (if set)
    2. /etc/timezone file (Debian/Ubuntu)
    3. /etc/localtime symlink target (most Linux distros)
    4. Fallback to UTC
    """
    if tz := os.environ.get("TZ"):
        return tz.lstrip(":")

    try:
        tz = Path("/etc/timezone").read_text().strip()
        if tz:
            return tz
    except (FileNotFoundError, PermissionError):
        pass

    try:
        link = Path("/etc/localtime").resolve()
        parts = str(link).split("zoneinfo/")
        if len(parts) > 1:
            return parts[1]
    except (FileNotFoundError, PermissionError):
        pass

    return "UTC"


@lru_cache(maxsize=1)
def get_chime_home() -> Path:
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".chime"


def get_config_path() -> Path:
    return get_chime_home() / "config.toml"


def get_database_path() -> Path:
    return get_chime_home() / "chime.db"


def get_logs_path() -> Path:
    return get_chime_home() / "logs"
