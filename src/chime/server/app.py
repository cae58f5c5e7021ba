"""FastAPI application for the Chime server."""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from chime import __version__
from chime.events import EventStore
from chime.reminders.broadcast import ReminderBroadcaster
from chime.reminders.scanner import DueEventScanner
from chime.scheduling import SystemClock, TimerName, TimerRegistry
from chime.server.commands import CommandHandler
from chime.server.connections import ConnectionHub
from chime.server.routes import health
from chime.server.routes.websocket import websocket_endpoint

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from chime.config import ChimeConfig
    from chime.db import Database
    from chime.scheduling import Clock

logger = logging.getLogger(__name__)


class ChimeServer:
    """Wires the reminder pipeline to the WebSocket transport.

    Owns the single TimerRegistry of the process and hands it to the
    scanner explicitly; nothing here is module-global.
    """

    def __init__(
        self,
        config: "ChimeConfig",
        database: "Database",
        clock: "Clock | None" = None,
    ):
        self._config = config
        self._database = database
        self._clock = clock or SystemClock(config.timezone)

        self._registry = TimerRegistry(self._clock, config.timer_specs())
        self._store = EventStore(database)
        self._hub = ConnectionHub()
        self._broadcaster = ReminderBroadcaster(self._hub)
        self._scanner = DueEventScanner(self._store, self._broadcaster, self._clock)
        self._scanner.listen(self._registry, TimerName.EVENT_REMINDER)
        self._commands = CommandHandler(self._store, self._clock)

        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def registry(self) -> TimerRegistry:
        return self._registry

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def hub(self) -> ConnectionHub:
        return self._hub

    @property
    def broadcaster(self) -> ReminderBroadcaster:
        return self._broadcaster

    @property
    def scanner(self) -> DueEventScanner:
        return self._scanner

    @property
    def commands(self) -> CommandHandler:
        return self._commands

    async def startup(self) -> None:
        logger.info("Starting Chime server")
        await self._database.connect()
        await self._database.create_tables()
        self._hub.attach()
        self._registry.start()
        for name, next_fire in self._registry.next_fire_times().items():
            logger.info(
                "timer_scheduled",
                extra={
                    "timer.name": name,
                    "timer.next_fire": next_fire.isoformat() if next_fire else None,
                },
            )

    async def shutdown(self) -> None:
        logger.info("Shutting down Chime server")
        await self._registry.stop()
        await self._registry.drain()
        self._hub.detach()
        await self._database.disconnect()

    def _create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI) -> "AsyncIterator[None]":
            await self.startup()
            yield
            await self.shutdown()

        app = FastAPI(
            title="Chime",
            description="Event reminders over WebSockets",
            version=__version__,
            lifespan=lifespan,
        )

        app.state.server = self
        app.state.database = self._database

        app.include_router(health.router, tags=["health"])
        app.add_api_websocket_route(
            self._config.server.websocket_path, websocket_endpoint
        )

        return app


def create_app(
    config: "ChimeConfig",
    database: "Database",
    clock: "Clock | None" = None,
) -> FastAPI:
    """Create the FastAPI application."""
    return ChimeServer(config=config, database=database, clock=clock).app
