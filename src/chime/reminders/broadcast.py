"""Reminder fan-out to every connected client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from chime.errors import NotInitializedError
from chime.events import Event

if TYPE_CHECKING:
    from chime.server.connections import Connection, ConnectionHub

logger = logging.getLogger(__name__)

REMINDER_CHANNEL = "eventReminder"


class ReminderBroadcaster:
    """Pushes due events to all live connections.

    Connections are served concurrently. Within one connection the events go
    out in the order given; a connection that disappears mid-delivery is
    skipped for the rest of the batch without affecting anyone else.
    """

    def __init__(self, hub: ConnectionHub, channel: str = REMINDER_CHANNEL):
        self._hub = hub
        self._channel = channel

    @property
    def channel(self) -> str:
        return self._channel

    async def notify_all(self, events: Sequence[Event]) -> None:
        if not self._hub.attached:
            raise NotInitializedError("Websocket server not initialised")
        if not events:
            return

        targets = self._hub.connections()
        if not targets:
            logger.debug(
                "reminder_no_clients", extra={"reminder.count": len(events)}
            )
            return

        payloads = [event.to_payload() for event in events]
        delivered = await asyncio.gather(
            *(self._deliver(connection, payloads) for connection in targets)
        )
        logger.debug(
            "reminders_broadcast",
            extra={
                "reminder.count": len(events),
                "connections.targeted": len(targets),
                "connections.delivered": sum(1 for ok in delivered if ok),
            },
        )

    async def _deliver(self, connection: Connection, payloads: list[dict]) -> bool:
        for payload in payloads:
            if not await self._hub.push(connection, self._channel, payload):
                return False
        return True
