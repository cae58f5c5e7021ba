"""Database layer."""

from chime.db.engine import Database
from chime.db.models import Base, EventRecord

__all__ = [
    "Base",
    "Database",
    "EventRecord",
]
