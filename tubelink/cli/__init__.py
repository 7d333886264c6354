"""tubelink CLI — command line interface."""

import click
from tubelink import __version__
from .shared import console


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="tubelink")
@click.pass_context
def cli(ctx):
    """tubelink — YouTube link previews for chat"""
    if ctx.invoked_subcommand is None:
        _show_help()


def _show_help():
    """Show all available commands grouped by category."""
    console.print(f"[bold]tubelink v{__version__}[/bold] — YouTube link previews for chat\n")

    groups = {
        "Run": [
            ("start", "Start the Telegram bot (and the delegation service if enabled)"),
            ("serve", "Run only the delegation service"),
        ],
        "Inspect": [
            ("parse", "Fetch and print normalized metadata for a link"),
            ("extract", "Print the video id found in a piece of text"),
        ],
    }

    for category, commands in groups.items():
        console.print(f"  [bold cyan]{category}[/bold cyan]")
        for name, desc in commands:
            console.print(f"    [bold]tubelink {name:10s}[/bold] {desc}")
        console.print()

    console.print("[dim]Run 'tubelink <command> --help' for details on a specific command.[/dim]")


# Import all command modules (registers commands onto cli group)
from . import cmd_start  # noqa: E402, F401
from . import cmd_parse  # noqa: E402, F401


@cli.command(name="help", hidden=True)
def help_cmd():
    """Show all available commands."""
    _show_help()


def main():
    """CLI entry point."""
    import sys
    try:
        cli(standalone_mode=False)
    except click.UsageError as e:
        if e.ctx:
            click.echo(e.ctx.command.get_usage(e.ctx), err=True)
        click.echo("Try 'tubelink help' for help.\n", err=True)
        click.echo(f"Error: {e.format_message()}", err=True)
        sys.exit(2)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.exceptions.Exit as e:
        sys.exit(e.code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
