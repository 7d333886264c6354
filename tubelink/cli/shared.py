"""Shared utilities for tubelink CLI commands."""

import sys

from rich.console import Console

from tubelink.config import TubelinkSettings, load_settings
from tubelink.errors import ConfigurationError

console = Console()


def load_settings_or_exit(**overrides) -> TubelinkSettings:
    """Load settings, printing the problem and exiting 1 if they are invalid."""
    try:
        return load_settings(**overrides)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("[dim]Settings come from TUBELINK_* environment variables or .env[/dim]")
        sys.exit(1)
