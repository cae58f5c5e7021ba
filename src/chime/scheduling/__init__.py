"""Scheduling subsystem - named cron timers that emit ticks.

Public API:
- TimerRegistry: Registers timers, starts/stops them, dispatches ticks
- Timer: Runtime state of one registered timer
- SystemClock / ManualClock: Real and virtual clock sources

Types:
- TimerSpec: Name + cron expression + description
- TimerName: Timer names with built-in subscribers
- Tick: A single firing passed to handlers
- TickHandler: Handler callback signature
"""

from chime.scheduling.clock import (
    Clock,
    ManualClock,
    SystemClock,
    resolve_timezone,
    truncate_to_minute,
)
from chime.scheduling.registry import TimerRegistry
from chime.scheduling.timer import Timer
from chime.scheduling.types import Tick, TickHandler, TimerName, TimerSpec

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "Tick",
    "TickHandler",
    "Timer",
    "TimerName",
    "TimerRegistry",
    "TimerSpec",
    "resolve_timezone",
    "truncate_to_minute",
]
