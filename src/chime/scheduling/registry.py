"""Timer registry - owns named cron timers and dispatches their ticks.

The registry never awaits handlers. Each tick schedules one asyncio task per
subscribed handler, so a slow or failing handler cannot delay the next tick
of its own timer or of any other timer.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from datetime import datetime

from chime.errors import DuplicateTimerError, UnknownTimerError
from chime.scheduling.clock import Clock
from chime.scheduling.timer import Timer
from chime.scheduling.types import Tick, TickHandler, TimerSpec

logger = logging.getLogger(__name__)


class TimerRegistry:
    """Registry of named periodic timers.

    Example:
        registry = TimerRegistry(SystemClock("Europe/Berlin"))
        registry.register(TimerSpec("everyMinute", "0 * * * * *"))

        @registry.handler("everyMinute")
        async def on_minute(tick):
            ...

        registry.start()
        ...
        await registry.stop()
    """

    def __init__(self, clock: Clock, specs: list[TimerSpec] | None = None):
        self._clock = clock
        self._timers: dict[str, Timer] = {}
        self._handlers: dict[str, list[TickHandler]] = defaultdict(list)
        self._inflight: set[asyncio.Task[None]] = set()
        self._running = False
        for spec in specs or []:
            self.register(spec)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def running(self) -> bool:
        return self._running

    @property
    def timers(self) -> list[Timer]:
        return list(self._timers.values())

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def get(self, name: str) -> Timer:
        try:
            return self._timers[name]
        except KeyError:
            raise UnknownTimerError(name) from None

    def register(self, spec: TimerSpec) -> Timer:
        if spec.name in self._timers:
            raise DuplicateTimerError(spec.name)
        timer = Timer(spec, self._clock)
        self._timers[spec.name] = timer
        logger.debug(
            "timer_registered",
            extra={"timer.name": spec.name, "timer.schedule": spec.schedule},
        )
        if self._running:
            timer.arm(self._emit)
        return timer

    def on_tick(self, name: str, handler: TickHandler) -> None:
        """Subscribe ``handler`` to every tick of timer ``name``."""
        if name not in self._timers:
            raise UnknownTimerError(name)
        self._handlers[name].append(handler)

    def handler(self, name: str):
        """Decorator form of on_tick()."""

        def decorator(func: TickHandler) -> TickHandler:
            self.on_tick(name, func)
            return func

        return decorator

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        for timer in self._timers.values():
            timer.arm(self._emit)
        logger.info(
            "timer_registry_started",
            extra={"timer.count": len(self._timers)},
        )

    async def stop(self) -> None:
        """Disarm every timer. In-flight handlers keep running."""
        if not self._running:
            return
        self._running = False
        for timer in self._timers.values():
            await timer.disarm()
        logger.info(
            "timer_registry_stopped",
            extra={"timer.inflight_handlers": len(self._inflight)},
        )

    async def drain(self) -> None:
        """Wait until every dispatched handler has finished."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def next_fire_times(self) -> dict[str, datetime | None]:
        return {name: timer.next_fire for name, timer in self._timers.items()}

    def _emit(self, tick: Tick) -> None:
        handlers = list(self._handlers.get(tick.name, ()))
        logger.debug(
            "timer_tick",
            extra={
                "timer.name": tick.name,
                "timer.scheduled_at": tick.scheduled_at.isoformat(),
                "timer.handlers": len(handlers),
            },
        )
        for handler in handlers:
            task = asyncio.create_task(self._invoke(handler, tick))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _invoke(self, handler: TickHandler, tick: Tick) -> None:
        try:
            result = handler(tick)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception(
                "tick_handler_failed",
                extra={
                    "timer.name": tick.name,
                    "timer.scheduled_at": tick.scheduled_at.isoformat(),
                    "error.type": type(e).__name__,
                    "error.message": str(e),
                },
            )
