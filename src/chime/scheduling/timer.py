"""Runtime state for a single cron-driven timer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from chime.scheduling.clock import Clock
from chime.scheduling.types import Tick, TimerSpec

logger = logging.getLogger(__name__)


class Timer:
    """Drives one TimerSpec against a clock.

    The timer remembers the last boundary it fired so that every boundary is
    emitted exactly once, even when the clock jumps backwards or skips ahead
    several boundaries at a time.
    """

    def __init__(self, spec: TimerSpec, clock: Clock):
        self._spec = spec
        self._clock = clock
        self._armed = False
        self._last_fired: datetime | None = None
        self._next_fire: datetime | None = None
        self._task: asyncio.Task[None] | None = None
        self._fire_count = 0

    @property
    def spec(self) -> TimerSpec:
        return self._spec

    @property
    def name(self) -> str:
        return self._spec.name

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def next_fire(self) -> datetime | None:
        return self._next_fire

    @property
    def last_fired(self) -> datetime | None:
        return self._last_fired

    @property
    def fire_count(self) -> int:
        return self._fire_count

    def arm(self, emit: Callable[[Tick], None]) -> None:
        if self._armed:
            return
        self._armed = True
        # Anchor on "now" so a restart never replays boundaries before it.
        self._last_fired = self._clock.now()
        self._next_fire = self._spec.next_after(self._last_fired)
        self._task = asyncio.create_task(
            self._run(emit), name=f"timer:{self._spec.name}"
        )
        logger.debug(
            "timer_armed",
            extra={
                "timer.name": self.name,
                "timer.next_fire": self._next_fire.isoformat(),
            },
        )

    async def disarm(self) -> None:
        if not self._armed:
            return
        self._armed = False
        self._next_fire = None
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def due_boundaries(self, now: datetime) -> list[datetime]:
        """Boundaries in (last_fired, now], oldest first."""
        if self._last_fired is None:
            return []
        boundaries: list[datetime] = []
        candidate = self._spec.next_after(self._last_fired)
        while candidate <= now:
            boundaries.append(candidate)
            candidate = self._spec.next_after(candidate)
        return boundaries

    async def _run(self, emit: Callable[[Tick], None]) -> None:
        while self._armed and self._next_fire is not None:
            await self._clock.sleep_until(self._next_fire)
            if not self._armed:
                return
            now = self._clock.now()
            for boundary in self.due_boundaries(now):
                self._last_fired = boundary
                self._fire_count += 1
                emit(Tick(name=self.name, scheduled_at=boundary, fired_at=now))
            if self._last_fired is not None:
                self._next_fire = self._spec.next_after(self._last_fired)
