"""Shared test fixtures and factories."""

from collections.abc import AsyncGenerator, Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from chime.db import Database
from chime.events import Event, EventStore
from chime.scheduling import ManualClock, TimerRegistry
from chime.server.connections import ConnectionHub

# Start of a minute, so "advance 59s" stays inside it.
T0 = datetime(2026, 1, 12, 9, 0, 0, tzinfo=UTC)


# =============================================================================
# Clock / Scheduling Fixtures
# =============================================================================


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
async def registry(clock: ManualClock) -> AsyncGenerator[TimerRegistry, None]:
    registry = TimerRegistry(clock)
    yield registry
    await registry.stop()
    await registry.drain()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a temporary test database."""
    db = Database(database_path=tmp_path / "test.db")
    await db.connect()
    await db.create_tables()

    yield db

    await db.disconnect()


@pytest.fixture
def store(database: Database) -> EventStore:
    return EventStore(database)


# =============================================================================
# Transport Fakes
# =============================================================================


class FakeConnection:
    """Records frames; optionally fails or runs a hook on send."""

    def __init__(self, label: str = "", fail_with: BaseException | None = None):
        self.label = label
        self.sent: list[dict[str, Any]] = []
        self.fail_with = fail_with
        self.on_send = None

    async def send_json(self, data: Any) -> None:
        if self.on_send is not None:
            self.on_send(self)
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(data)

    @property
    def payload_ids(self) -> list[str]:
        return [frame["payload"]["id"] for frame in self.sent]


@pytest.fixture
def hub() -> ConnectionHub:
    hub = ConnectionHub()
    hub.attach()
    return hub


@pytest.fixture
def make_connection():
    """Factory for FakeConnection instances."""

    def factory(label: str = "", fail_with: BaseException | None = None):
        return FakeConnection(label, fail_with)

    return factory


@pytest.fixture
def make_event():
    """Factory for in-memory Event instances (default time: T0)."""

    def factory(event_id: str, time: datetime = T0, name: str | None = None) -> Event:
        return Event(id=event_id, name=name or f"event {event_id}", time=time)

    return factory


# =============================================================================
# CLI / Config Fixtures
# =============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_toml_content(tmp_path: Path) -> str:
    return f"""
timezone = "UTC"

[server]
host = "127.0.0.1"
port = 3100

[database]
path = "{tmp_path / "chime.db"}"

[logging]
level = "DEBUG"
file = false

[[timers]]
name = "eventReminder"
schedule = "0 * * * * *"
description = "Due events"

[[timers]]
name = "hourly"
schedule = "0 * * * *"
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


@pytest.fixture
def isolated_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Point CHIME_HOME and the working directory at an empty temp dir."""
    from chime.config.paths import ENV_VAR, get_chime_home

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.chdir(tmp_path)
    for var in (
        "CHIME_TIMEZONE",
        "CHIME_HOST",
        "CHIME_PORT",
        "CHIME_DATABASE_URL",
        "CHIME_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    get_chime_home.cache_clear()
    yield home
    get_chime_home.cache_clear()
