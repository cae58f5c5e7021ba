"""Server command."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option("--host", "-h", help="Host to bind to"),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option("--port", "-p", help="Port to bind to"),
        ] = None,
    ) -> None:
        """Start the Chime reminder server."""
        from chime.cli.console import load_config_or_exit

        chime_config = load_config_or_exit(config)
        try:
            asyncio.run(_run_server(chime_config, host, port))
        except KeyboardInterrupt:
            # Use print here since logging may not be configured yet
            print("\nServer stopped")


async def _run_server(chime_config, host: str | None, port: int | None) -> None:
    from chime.db import Database
    from chime.logging import configure_logging
    from chime.server import ServerRunner, create_app

    configure_logging(
        level=chime_config.logging.level,
        use_rich=True,
        log_to_file=chime_config.logging.file,
    )

    database = Database(
        database_url=chime_config.database.url,
        database_path=chime_config.database.path,
    )
    logger.info(
        "config_loaded",
        extra={
            "config.timezone": chime_config.timezone,
            "config.timers": len(chime_config.timers),
        },
    )

    runner = ServerRunner(
        create_app(chime_config, database),
        host=host or chime_config.server.host,
        port=port or chime_config.server.port,
    )
    await runner.run()
