"""Event types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Event:
    """A persisted reminder.

    ``time`` is always timezone-aware UTC.
    """

    id: str
    name: str
    time: datetime
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_payload(self) -> dict[str, Any]:
        """JSON-serializable form pushed to clients."""
        return {
            "id": self.id,
            "name": self.name,
            "time": self.time.isoformat(),
        }
