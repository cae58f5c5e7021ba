"""Event store backed by the async SQLAlchemy database."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from chime.db import Database, EventRecord
from chime.db.models import utc_now
from chime.errors import PersistenceQueryError, PersistenceWriteError
from chime.events.types import Event

logger = logging.getLogger(__name__)


def to_storage(instant: datetime) -> datetime:
    """Aware datetime -> naive UTC, the column format."""
    if instant.tzinfo is None:
        raise ValueError(f"Expected timezone-aware datetime, got {instant!r}")
    return instant.astimezone(UTC).replace(tzinfo=None)


def from_storage(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_event(record: EventRecord) -> Event:
    return Event(
        id=record.id,
        name=record.name,
        time=from_storage(record.time),
        created_at=from_storage(record.created_at),
    )


class EventStore:
    """Reads and writes reminders.

    Every SQLAlchemy failure is re-raised as PersistenceQueryError (reads) or
    PersistenceWriteError (writes) so callers never depend on driver errors.
    """

    def __init__(self, database: Database):
        self._db = database

    async def find_events_at(self, instant: datetime) -> list[Event]:
        """Events whose stored time equals ``instant`` exactly."""
        key = to_storage(instant)
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    select(EventRecord)
                    .where(EventRecord.time == key)
                    .order_by(EventRecord.created_at, EventRecord.id)
                )
                records = result.scalars().all()
        except (SQLAlchemyError, RuntimeError, OSError) as e:
            raise PersistenceQueryError(
                f"Error querying events by time = '{instant.isoformat()}': {e}"
            ) from e
        return [_to_event(r) for r in records]

    async def save(self, name: str, time: datetime) -> Event:
        record = EventRecord(
            id=uuid.uuid4().hex,
            name=name,
            time=to_storage(time),
            created_at=utc_now(),
        )
        try:
            async with self._db.session() as session:
                session.add(record)
        except (SQLAlchemyError, RuntimeError, OSError) as e:
            raise PersistenceWriteError(
                f"Error saving event name={name!r} time='{time.isoformat()}': {e}"
            ) from e
        logger.info(
            "event_saved",
            extra={"event.id": record.id, "event.time": time.isoformat()},
        )
        return _to_event(record)

    async def list_upcoming(
        self, after: datetime | None = None, limit: int = 50
    ) -> list[Event]:
        """Events at or after ``after`` (default: all), soonest first."""
        stmt = select(EventRecord).order_by(EventRecord.time, EventRecord.id)
        if after is not None:
            stmt = stmt.where(EventRecord.time >= to_storage(after))
        try:
            async with self._db.session() as session:
                result = await session.execute(stmt.limit(limit))
                records = result.scalars().all()
        except (SQLAlchemyError, RuntimeError, OSError) as e:
            raise PersistenceQueryError(f"Error listing events: {e}") from e
        return [_to_event(r) for r in records]

    async def delete(self, event_id: str) -> bool:
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    delete(EventRecord).where(EventRecord.id == event_id)
                )
        except (SQLAlchemyError, RuntimeError, OSError) as e:
            raise PersistenceWriteError(f"Error deleting event {event_id}: {e}") from e
        return bool(result.rowcount)
