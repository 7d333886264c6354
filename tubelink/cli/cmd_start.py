"""Start and serve commands."""

import asyncio
import click

from . import cli
from .shared import console, load_settings_or_exit


@cli.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def start(debug):
    """Start the Telegram bot."""
    from tubelink.main import configure_logging, run

    configure_logging(debug)
    settings = load_settings_or_exit()
    console.print(f"[bold blue]Starting tubelink ({settings.work_mode} mode)...[/bold blue]")
    asyncio.run(run(settings))


@cli.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--host", default=None, help="Bind address (overrides TUBELINK_SERVICE_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (overrides TUBELINK_SERVICE_PORT)")
def serve(debug, host, port):
    """Run only the delegation service."""
    from tubelink.main import configure_logging, serve as serve_service

    configure_logging(debug)
    overrides = {"enable_service": True}
    if host:
        overrides["service_host"] = host
    if port:
        overrides["service_port"] = port
    settings = load_settings_or_exit(**overrides)
    console.print(
        f"[bold blue]Serving on http://{settings.service_host}:{settings.service_port}[/bold blue]"
    )
    asyncio.run(serve_service(settings))
