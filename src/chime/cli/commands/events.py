"""Event scheduling and listing commands."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer


def _database(chime_config):
    from chime.db import Database

    return Database(
        database_url=chime_config.database.url,
        database_path=chime_config.database.path,
    )


def register(app: typer.Typer) -> None:
    """Register the schedule and events commands."""

    @app.command()
    def schedule(
        name: Annotated[str, typer.Argument(help="Event name")],
        time: Annotated[str, typer.Argument(help="Local time as 'YYYY-MM-DD HH:mm'")],
        tz: Annotated[
            str | None,
            typer.Option("--tz", "-z", help="IANA time zone (default: config)"),
        ] = None,
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Schedule an event reminder.

        Examples:
            chime schedule "Standup" "2026-01-12 09:30"
            chime schedule "Call" "2026-01-12 18:00" --tz America/New_York
        """
        from chime.cli.console import error, load_config_or_exit, success
        from chime.errors import ChimeError
        from chime.events import EventStore
        from chime.scheduling import SystemClock
        from chime.server.commands import CommandHandler

        chime_config = load_config_or_exit(config)
        zone = tz or chime_config.timezone
        database = _database(chime_config)

        async def run():
            await database.connect()
            try:
                await database.create_tables()
                handler = CommandHandler(
                    EventStore(database), SystemClock(chime_config.timezone)
                )
                return await handler.schedule_event(
                    {"eventName": name, "time": time, "timeZone": zone}
                )
            finally:
                await database.disconnect()

        try:
            event = asyncio.run(run())
        except ChimeError as e:
            error(str(e))
            raise typer.Exit(1) from None

        success(f"Scheduled {event.name!r} at {event.time.isoformat()} (id {event.id})")

    @app.command()
    def events(
        limit: Annotated[
            int, typer.Option("--limit", "-n", help="Maximum events to show")
        ] = 20,
        show_all: Annotated[
            bool, typer.Option("--all", "-a", help="Include past events")
        ] = False,
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """List upcoming event reminders."""
        from chime.cli.console import (
            console,
            create_table,
            dim,
            error,
            format_countdown,
            load_config_or_exit,
        )
        from chime.errors import ChimeError
        from chime.events import EventStore
        from chime.scheduling import SystemClock, truncate_to_minute

        chime_config = load_config_or_exit(config)
        clock = SystemClock(chime_config.timezone)
        now = clock.now()
        database = _database(chime_config)

        async def run():
            await database.connect()
            try:
                await database.create_tables()
                after = None if show_all else truncate_to_minute(now)
                return await EventStore(database).list_upcoming(after, limit)
            finally:
                await database.disconnect()

        try:
            found = asyncio.run(run())
        except ChimeError as e:
            error(str(e))
            raise typer.Exit(1) from None

        if not found:
            dim("No events scheduled")
            return

        table = create_table(
            "Events",
            [("ID", "dim"), ("Name", "cyan"), ("Time", "green"), ("", "dim")],
        )
        for event in found:
            local = event.time.astimezone(clock.tz)
            table.add_row(
                event.id[:8],
                event.name,
                local.strftime("%Y-%m-%d %H:%M %Z"),
                format_countdown(local, now),
            )
        console.print(table)
