"""Shared console utilities for CLI commands."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chime.config import ChimeConfig, ConfigError, load_config

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    console.print(f"[red]{msg}[/red]")


def success(msg: str) -> None:
    console.print(f"[green]{msg}[/green]")


def dim(msg: str) -> None:
    console.print(f"[dim]{msg}[/dim]")


def create_table(title: str, columns: list[tuple[str, str]]) -> Table:
    table = Table(title=title)
    for name, style in columns:
        table.add_column(name, style=style)
    return table


def load_config_or_exit(path: Path | None) -> ChimeConfig:
    """Load config, printing a readable error and exiting on failure."""
    try:
        return load_config(path)
    except FileNotFoundError as e:
        error(escape(str(e)))
        raise typer.Exit(1) from None
    except ConfigError as e:
        error(escape(str(e)))
        raise typer.Exit(1) from None


def format_countdown(target: datetime | None, now: datetime) -> str:
    """Short human countdown such as 'in 42s' or 'in 3h 5m'."""
    if target is None:
        return "[dim]?[/dim]"
    if target <= now:
        return "[green]now[/green]"

    total_seconds = int((target - now).total_seconds())
    if total_seconds < 60:
        return f"in {total_seconds}s"

    total_minutes = total_seconds // 60
    if total_minutes < 60:
        return f"in {total_minutes}m"

    hours, minutes = divmod(total_minutes, 60)
    if hours < 24:
        return f"in {hours}h {minutes}m" if minutes else f"in {hours}h"

    days, hours = divmod(hours, 24)
    return f"in {days}d {hours}h" if hours else f"in {days}d"
