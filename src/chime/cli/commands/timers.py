"""Timer inspection command."""

from pathlib import Path
from typing import Annotated

import typer


def register(app: typer.Typer) -> None:
    """Register the timers command."""

    @app.command()
    def timers(
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """List configured timers and when they fire next."""
        from chime.cli.console import (
            console,
            create_table,
            format_countdown,
            load_config_or_exit,
        )
        from chime.scheduling import SystemClock

        chime_config = load_config_or_exit(config)
        clock = SystemClock(chime_config.timezone)
        now = clock.now()

        table = create_table(
            f"Timers ({chime_config.timezone})",
            [
                ("Name", "cyan"),
                ("Schedule", "magenta"),
                ("Next fire", "green"),
                ("", "dim"),
                ("Description", "white"),
            ],
        )
        for spec in chime_config.timer_specs():
            next_fire = spec.next_after(now)
            table.add_row(
                spec.name,
                spec.schedule,
                next_fire.strftime("%Y-%m-%d %H:%M:%S"),
                format_countdown(next_fire, now),
                spec.description,
            )
        console.print(table)
