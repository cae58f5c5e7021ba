"""Persisted reminder events.

Public API:
- EventStore: Save and look up events by exact minute
- Event: A persisted reminder
"""

from chime.events.store import EventStore
from chime.events.types import Event

__all__ = [
    "Event",
    "EventStore",
]
