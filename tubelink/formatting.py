"""Text rendering of VideoMetadata and platform length handling."""

from .models import VideoMetadata

# (label, VideoMetadata attribute), in display order
TEXT_FIELDS = (
    ("Title", "title"),
    ("Channel", "channel"),
    ("Published", "publish_time"),
    ("Views", "view_count"),
    ("Description", "description"),
    ("Tags", "tags"),
)


def format_text_message(metadata: VideoMetadata) -> str:
    """One labeled line per field, tab after the label."""
    return "\n".join(f"{label}:\t{getattr(metadata, attr)}" for label, attr in TEXT_FIELDS)


def split_message(text: str, max_length: int = 4096) -> list[str]:
    """Split a long message into chunks respecting platform length limits.

    Tries to split at newlines first, then spaces, then hard-cuts.

    Args:
        text: Message text to split
        max_length: Maximum length per chunk (default: 4096 for Telegram)

    Returns:
        List of message chunks
    """
    if len(text) <= max_length:
        return [text]

    chunks = []
    remaining = text

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        split_at = remaining.rfind("\n", 0, max_length)
        if split_at == -1:
            split_at = remaining.rfind(" ", 0, max_length)
        if split_at <= 0:
            split_at = max_length

        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:].lstrip()

    return chunks
