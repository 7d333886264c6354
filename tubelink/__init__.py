"""tubelink — YouTube link previews for chat bots."""

__version__ = "0.1.0"
