"""
Serve command implementation for BugBot CLI.

This module implements the 'serve' command which exposes a browser session
over HTTP for out-of-process clients.
"""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from bugbot.config.factory import ConfigurationFactory
from bugbot.exceptions import ConfigurationError
from bugbot.runner.server import create_app
from bugbot.utils.logging_config import configure_logging

console = Console()


def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(3001, "--port", help="Port to listen on"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path of the bugbot.toml configuration file"
    ),
) -> None:
    """Serve one browser session over HTTP.

    Clients call `POST /init` to start the browser and drive it through the
    navigation, interaction and observation endpoints.
    """
    try:
        settings = ConfigurationFactory.get_settings(cli_mode=True, config_path=config_path)
        configure_logging(settings.log_level, settings.logging_enabled)
    except ConfigurationError as e:
        console.print(f"❌ Invalid configuration: {e}")
        raise typer.Exit(1)

    console.print(f"🌐 BugBot runner listening on http://{host}:{port}")
    uvicorn.run(create_app(settings=settings), host=host, port=port, log_level="warning")
