"""Live WebSocket connection registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)

# Errors a send may raise when the peer went away mid-push.
TRANSIENT_SEND_ERRORS: tuple[type[BaseException], ...] = (
    WebSocketDisconnect,
    ConnectionError,
    RuntimeError,
    OSError,
)


class Connection(Protocol):
    """Anything that can receive a JSON frame (starlette's WebSocket does)."""

    async def send_json(self, data: Any) -> None: ...


class ConnectionHub:
    """Tracks the connections attached to the WebSocket endpoint.

    Membership changes whenever a client connects or disconnects, including
    while a fan-out is iterating. Readers therefore always work on a snapshot
    and ``push`` treats a vanished connection as a silent no-op.
    """

    def __init__(self) -> None:
        self._connections: dict[int, Connection] = {}
        self._attached = False

    @property
    def attached(self) -> bool:
        """True once a listening endpoint has been bound."""
        return self._attached

    def attach(self) -> None:
        self._attached = True
        logger.info("connection_hub_attached")

    def detach(self) -> None:
        self._attached = False
        self._connections.clear()
        logger.info("connection_hub_detached")

    def add(self, connection: Connection) -> None:
        self._connections[id(connection)] = connection
        logger.debug(
            "client_connected", extra={"connections.count": len(self._connections)}
        )

    def discard(self, connection: Connection) -> None:
        if self._connections.pop(id(connection), None) is not None:
            logger.debug(
                "client_disconnected",
                extra={"connections.count": len(self._connections)},
            )

    def __contains__(self, connection: object) -> bool:
        return self._connections.get(id(connection)) is connection

    def __len__(self) -> int:
        return len(self._connections)

    def connections(self) -> tuple[Connection, ...]:
        """Snapshot of the currently live connections."""
        return tuple(self._connections.values())

    def for_each_connection(self, fn: Callable[[Connection], Any]) -> None:
        """Call ``fn`` per live connection, skipping any that left mid-loop."""
        for connection in self.connections():
            if connection in self:
                fn(connection)

    async def push(self, connection: Connection, channel: str, payload: Any) -> bool:
        """Send one message. Returns False if the connection is gone."""
        if connection not in self:
            return False
        try:
            await connection.send_json({"channel": channel, "payload": payload})
        except TRANSIENT_SEND_ERRORS as e:
            logger.debug(
                "push_failed",
                extra={"push.channel": channel, "error.message": str(e)},
            )
            self.discard(connection)
            return False
        return True
