"""Main CLI application."""

import typer

from chime.cli.commands import events, serve, timers

app = typer.Typer(
    name="chime",
    help="Chime - event reminders over WebSockets",
    no_args_is_help=True,
)

serve.register(app)
timers.register(app)
events.register(app)


if __name__ == "__main__":
    app()
