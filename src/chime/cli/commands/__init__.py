"""CLI command modules."""

from chime.cli.commands import events, serve, timers

__all__ = [
    "events",
    "serve",
    "timers",
]
