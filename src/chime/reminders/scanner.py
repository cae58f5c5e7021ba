"""Due-event scanner - turns timer ticks into reminder fan-out."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from chime.errors import PersistenceQueryError
from chime.events import Event
from chime.scheduling import Clock, Tick, TimerName, TimerRegistry, truncate_to_minute

logger = logging.getLogger(__name__)


class EventLookup(Protocol):
    async def find_events_at(self, instant) -> list[Event]: ...


class Notifier(Protocol):
    async def notify_all(self, events: Sequence[Event]) -> None: ...


class DueEventScanner:
    """Checks the store for events due at the current minute.

    A failed query is logged and the tick is dropped; the next tick simply
    tries again with its own minute. Fan-out errors are left to the
    registry's handler isolation.
    """

    def __init__(self, store: EventLookup, broadcaster: Notifier, clock: Clock):
        self._store = store
        self._broadcaster = broadcaster
        self._clock = clock

    def listen(
        self,
        registry: TimerRegistry,
        timer_name: str = TimerName.EVENT_REMINDER,
    ) -> None:
        """Subscribe to ticks of one timer."""
        registry.on_tick(timer_name, self.scan)
        logger.debug("scanner_listening", extra={"timer.name": str(timer_name)})

    async def scan(self, tick: Tick | None = None) -> int:
        """Run one scan. Returns the number of due events found."""
        current_minute = truncate_to_minute(self._clock.now())
        try:
            events = await self._store.find_events_at(current_minute)
        except PersistenceQueryError as e:
            logger.error(
                "due_event_query_failed",
                extra={
                    "scan.minute": current_minute.isoformat(),
                    "error.message": str(e),
                },
            )
            return 0

        if not events:
            return 0

        logger.info(
            "due_events_found",
            extra={"scan.minute": current_minute.isoformat(), "scan.found": len(events)},
        )
        await self._broadcaster.notify_all(events)
        return len(events)
