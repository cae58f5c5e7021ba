"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from chime.config.paths import get_database_path, get_system_timezone
from chime.scheduling import TimerName, TimerSpec
from chime.scheduling.types import validate_schedule


class ConfigError(Exception):
    """Configuration error."""

    pass


class ServerConfig(BaseModel):
    """Configuration for the HTTP/WebSocket server."""

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    websocket_path: str = "/ws"


class DatabaseConfig(BaseModel):
    """Where events are stored.

    ``url`` must use an async driver (e.g. ``sqlite+aiosqlite://``,
    ``postgresql+asyncpg://``). Without it the SQLite file at ``path`` is used.
    """

    url: str | None = None
    path: Path = Field(default_factory=get_database_path)


class TimerConfig(BaseModel):
    """One ``[[timers]]`` entry."""

    name: str = Field(min_length=1)
    schedule: str
    description: str = ""

    @field_validator("schedule")
    @classmethod
    def _check_schedule(cls, value: str) -> str:
        # Fail at load time, not at the first scheduled fire.
        return validate_schedule(value)

    def to_spec(self) -> TimerSpec:
        return TimerSpec(
            name=self.name, schedule=self.schedule, description=self.description
        )


def _default_timers() -> list[TimerConfig]:
    return [
        TimerConfig(
            name=TimerName.EVENT_REMINDER,
            schedule="0 * * * * *",
            description="Checks for due events at the start of every minute",
        )
    ]


class LoggingConfig(BaseModel):
    """Logging options."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file: bool = True


class ChimeConfig(BaseModel):
    """Root configuration model."""

    timezone: str = Field(default_factory=get_system_timezone)
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    timers: list[TimerConfig] = Field(default_factory=_default_timers)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value!r}") from e
        return value

    @model_validator(mode="after")
    def _check_unique_timers(self) -> "ChimeConfig":
        seen: set[str] = set()
        for timer in self.timers:
            if timer.name in seen:
                raise ValueError(f"Duplicate timer name: {timer.name!r}")
            seen.add(timer.name)
        if TimerName.EVENT_REMINDER not in seen:
            raise ValueError(
                f"A timer named {TimerName.EVENT_REMINDER.value!r} is required"
            )
        return self

    def timer_specs(self) -> list[TimerSpec]:
        return [timer.to_spec() for timer in self.timers]
