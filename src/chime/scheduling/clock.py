"""Clock sources for the timer registry.

Timers never call ``datetime.now`` or ``asyncio.sleep`` directly; they go
through a Clock so tests can drive time explicitly with ManualClock.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

# Upper bound on a single real sleep so wall-clock adjustments are noticed.
MAX_SLEEP_SECONDS = 30.0


class Clock(Protocol):
    """Source of the current instant. Inject a ManualClock in tests."""

    @property
    def tz(self) -> tzinfo: ...

    def now(self) -> datetime: ...

    async def sleep_until(self, instant: datetime) -> None: ...


def resolve_timezone(name: str | None) -> tzinfo:
    """Resolve an IANA zone name, falling back to UTC."""
    if not name:
        return UTC
    try:
        return ZoneInfo(name)
    except (KeyError, ValueError):
        logger.warning("invalid_timezone", extra={"clock.timezone": name})
        return UTC


def truncate_to_minute(instant: datetime) -> datetime:
    """Zero the seconds and sub-second components of an instant."""
    return instant.replace(second=0, microsecond=0)


class SystemClock:
    """Wall-clock time in a configured time zone."""

    def __init__(self, timezone: str | tzinfo | None = None):
        if isinstance(timezone, tzinfo):
            self._tz = timezone
        else:
            self._tz = resolve_timezone(timezone)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    async def sleep_until(self, instant: datetime) -> None:
        while True:
            remaining = (instant - self.now()).total_seconds()
            if remaining <= 0:
                return
            await asyncio.sleep(min(remaining, MAX_SLEEP_SECONDS))


class ManualClock:
    """Virtual clock that only moves when told to.

    Sleepers are woken by ``advance()`` / ``set()`` once the virtual time
    reaches their deadline. Both methods yield to the event loop afterwards so
    woken timers get to emit their ticks before the caller continues.

    Example:
        clock = ManualClock(datetime(2026, 1, 1, 9, 0, tzinfo=UTC))
        registry = TimerRegistry(clock)
        ...
        await clock.advance(seconds=60)
    """

    def __init__(
        self,
        start: datetime | None = None,
        timezone: str | tzinfo | None = None,
        settle_rounds: int = 10,
    ):
        if isinstance(timezone, tzinfo):
            self._tz = timezone
        else:
            self._tz = resolve_timezone(timezone)
        if start is None:
            start = datetime.now(self._tz)
        elif start.tzinfo is None:
            start = start.replace(tzinfo=self._tz)
        self._now = start.astimezone(self._tz)
        self._settle_rounds = settle_rounds
        self._sleepers: list[tuple[datetime, int, asyncio.Future[None]]] = []
        self._counter = itertools.count()

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, _, fut in self._sleepers if not fut.done())

    def now(self) -> datetime:
        return self._now

    async def sleep_until(self, instant: datetime) -> None:
        if instant <= self._now:
            await asyncio.sleep(0)
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (instant, next(self._counter), future))
        await future

    async def advance(
        self, delta: timedelta | None = None, *, seconds: float = 0
    ) -> datetime:
        """Move the clock forward (or backward, with a negative delta)."""
        step = delta if delta is not None else timedelta(seconds=seconds)
        return await self.set(self._now + step)

    async def set(self, instant: datetime) -> datetime:
        """Jump the clock to an arbitrary instant."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self._tz)
        self._now = instant.astimezone(self._tz)
        self._wake_due()
        await self._settle()
        return self._now

    def _wake_due(self) -> None:
        while self._sleepers and self._sleepers[0][0] <= self._now:
            _, _, future = heapq.heappop(self._sleepers)
            if not future.done():
                future.set_result(None)

    async def _settle(self) -> None:
        for _ in range(self._settle_rounds):
            await asyncio.sleep(0)
