"""Parse and extract commands — run the pipeline once from the shell."""

import asyncio
import sys

import click
from rich.table import Table

from . import cli
from .shared import console, load_settings_or_exit


@cli.command()
@click.argument("text")
def extract(text):
    """Print the video id found in TEXT."""
    from tubelink.extract import extract as extract_reference

    ref = extract_reference(text)
    if ref is None:
        console.print("[yellow]No YouTube video id found.[/yellow]")
        sys.exit(1)
    console.print(f"[bold]{ref.video_id}[/bold]  [dim]{ref.canonical_url}[/dim]")


@cli.command()
@click.argument("url")
@click.option("--image", "image_path", type=click.Path(dir_okay=False, writable=True),
              help="Also render the card and write the PNG here")
def parse(url, image_path):
    """Fetch and print normalized metadata for URL."""
    settings = load_settings_or_exit()

    async def _parse():
        import httpx

        from tubelink.errors import TubelinkError
        from tubelink.main import build_parser
        from tubelink.render import render_video_card, start_renderer
        from tubelink.transport import create_transport

        async with httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True) as client:
            transport = create_transport(settings, client)
            try:
                metadata = await build_parser(settings, transport).parse(url)
            except TubelinkError as e:
                console.print(f"[red]{type(e).__name__}:[/red] {e}")
                return 1
            finally:
                await transport.aclose()

        table = Table(title=metadata.title, show_header=False, padding=(0, 2))
        table.add_column("Key", style="bold")
        table.add_column("Value")
        table.add_row("Channel", metadata.channel)
        table.add_row("Published", metadata.publish_time)
        table.add_row("Views", metadata.view_count)
        table.add_row("Tags", metadata.tags)
        table.add_row("Description", metadata.description)
        table.add_row("Thumbnail", f"{metadata.thumbnail_url} ({metadata.thumbnail_mime}, {len(metadata.thumbnail)} bytes)")
        console.print(table)

        if not image_path:
            return 0

        renderer = await start_renderer()
        try:
            image = await render_video_card(renderer, metadata)
        finally:
            if renderer:
                await renderer.stop()
        if not image:
            console.print("[red]Failed to render image.[/red]")
            return 1
        with open(image_path, "wb") as f:
            f.write(image)
        console.print(f"[green]✓[/green] Card written to {image_path}")
        return 0

    sys.exit(asyncio.run(_parse()))
