"""Timer types.

Public types:
- TimerName: Timer names the application subscribes to
- TimerSpec: Static timer configuration (name + cron expression)
- Tick: A single firing of a named timer
- TickHandler: Callback signature for tick subscribers
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from croniter import CroniterError, croniter

from chime.errors import InvalidScheduleError


class TimerName(StrEnum):
    """Timers with built-in subscribers."""

    EVENT_REMINDER = "eventReminder"


def _fields(schedule: str) -> list[str]:
    return schedule.split()


def make_cron(schedule: str, base: datetime) -> croniter:
    """Build a croniter for a 5-field or seconds-first 6-field expression."""
    return croniter(
        schedule,
        base,
        second_at_beginning=len(_fields(schedule)) == 6,
    )


def validate_schedule(schedule: str) -> str:
    """Return the normalized expression or raise InvalidScheduleError."""
    if not isinstance(schedule, str) or not schedule.strip():
        raise InvalidScheduleError(str(schedule), "empty expression")
    normalized = " ".join(_fields(schedule))
    if len(_fields(normalized)) not in (5, 6):
        raise InvalidScheduleError(schedule, "expected 5 or 6 fields")
    try:
        make_cron(normalized, datetime.now()).get_next(datetime)
    except (CroniterError, KeyError, ValueError) as e:
        raise InvalidScheduleError(schedule, str(e)) from e
    return normalized


@dataclass(frozen=True)
class TimerSpec:
    """A named periodic timer.

    ``schedule`` takes either classic 5-field cron (minute resolution) or a
    6-field expression whose first field is seconds, e.g. ``0 * * * * *``.
    """

    name: str
    schedule: str
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Timer name must not be empty")
        object.__setattr__(self, "schedule", validate_schedule(self.schedule))

    def next_after(self, instant: datetime) -> datetime:
        """First scheduled instant strictly after ``instant``."""
        return make_cron(self.schedule, instant).get_next(datetime)


@dataclass(frozen=True)
class Tick:
    """A single firing of a named timer."""

    name: str
    scheduled_at: datetime
    fired_at: datetime = field(compare=False)


# Handlers may be plain functions or coroutines; the return value is ignored.
TickHandler = Callable[[Tick], Awaitable[Any] | Any]
