"""Tests for configuration loading."""

from pathlib import Path

import pytest

from chime.config import ChimeConfig, ConfigError, load_config
from chime.config.loader import get_default_config
from chime.scheduling import TimerName


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "custom.toml"
    path.write_text(content)
    return path


class TestLoadConfig:
    def test_load_from_file(self, config_file: Path, tmp_path: Path):
        config = load_config(config_file)

        assert config.timezone == "UTC"
        assert config.server.port == 3100
        assert config.database.path == tmp_path / "chime.db"
        assert config.logging.level == "DEBUG"
        assert config.logging.file is False
        assert [t.name for t in config.timers] == ["eventReminder", "hourly"]

    def test_timer_specs(self, config_file: Path):
        specs = load_config(config_file).timer_specs()

        assert specs[0].name == TimerName.EVENT_REMINDER
        assert specs[0].schedule == "0 * * * * *"
        assert specs[1].schedule == "0 * * * *"

    def test_explicit_missing_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_defaults_without_file(self, isolated_home: Path):
        config = load_config()

        assert config.server.port == 3000
        assert config.server.websocket_path == "/ws"
        assert [t.name for t in config.timers] == ["eventReminder"]
        assert config.timers[0].schedule == "0 * * * * *"

    def test_finds_config_in_home(self, isolated_home: Path):
        (isolated_home / "config.toml").write_text('timezone = "Asia/Tokyo"\n')
        assert load_config().timezone == "Asia/Tokyo"

    def test_env_overrides(self, config_file: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CHIME_PORT", "4000")
        monkeypatch.setenv("CHIME_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("CHIME_LOG_LEVEL", "warning")

        config = load_config(config_file)

        assert config.server.port == 4000
        assert config.timezone == "Europe/Berlin"
        assert config.logging.level == "WARNING"

    def test_invalid_toml(self, tmp_path: Path):
        path = write_config(tmp_path, "timezone = \n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)


class TestValidation:
    def test_invalid_cron_rejected_at_load(self, tmp_path: Path):
        path = write_config(
            tmp_path,
            """
[[timers]]
name = "eventReminder"
schedule = "not a cron"
""",
        )
        with pytest.raises(ConfigError, match="schedule"):
            load_config(path)

    def test_event_reminder_timer_required(self, tmp_path: Path):
        path = write_config(
            tmp_path,
            """
[[timers]]
name = "hourly"
schedule = "0 * * * *"
""",
        )
        with pytest.raises(ConfigError, match="eventReminder"):
            load_config(path)

    def test_duplicate_timer_names(self, tmp_path: Path):
        path = write_config(
            tmp_path,
            """
[[timers]]
name = "eventReminder"
schedule = "0 * * * * *"

[[timers]]
name = "eventReminder"
schedule = "30 * * * * *"
""",
        )
        with pytest.raises(ConfigError, match="Duplicate timer name"):
            load_config(path)

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            ChimeConfig(timezone="Mars/Olympus")

    def test_port_bounds(self):
        with pytest.raises(ValueError):
            ChimeConfig.model_validate({"server": {"port": 70000}})

    def test_default_config(self, isolated_home: Path):
        config = get_default_config()
        assert config.timer_specs()[0].name == "eventReminder"
