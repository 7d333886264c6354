"""Value objects shared by the pipeline and the host adapters."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

WATCH_URL_PREFIX = "https://www.youtube.com/watch?v="


@dataclass(frozen=True)
class VideoReference:
    """A single video, as found in a chat message."""
    video_id: str
    source_url: str

    @property
    def canonical_url(self) -> str:
        return WATCH_URL_PREFIX + self.video_id


@dataclass(frozen=True)
class VideoMetadata:
    """Normalized, transport-agnostic view of a video.

    Every field is a printable string except the thumbnail. The description
    has already been through the description policy, so it is never the raw
    value when hiding is enabled.
    """
    title: str
    channel: str
    publish_time: str
    description: str
    tags: str
    view_count: str
    thumbnail: bytes = b""
    thumbnail_mime: str = "image/jpg"
    thumbnail_url: str = ""


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    hint_message: Optional[str] = None


@dataclass(frozen=True)
class InboundMessage:
    """A chat message as the host delivered it."""
    platform: str
    user_id: str
    channel_id: str
    message_id: Any
    content: str


@dataclass(frozen=True)
class OutboundMessage:
    """One reply produced by the dispatch coordinator.

    `image` is raw bytes; the host decides how to upload them.
    `quote_message_id` is set when the reply should quote the origin message.
    """
    text: str = ""
    image: Optional[bytes] = None
    image_mime: str = "image/png"
    quote_message_id: Any = None


class ChatSession(ABC):
    """The narrow slice of the chat host the coordinator needs."""

    @abstractmethod
    async def send(self, message: OutboundMessage) -> Any:
        """Send a reply into the origin channel.

        Returns:
            The platform message id of the sent message, or None.
        """

    @abstractmethod
    async def delete_message(self, message_id: Any) -> None:
        """Delete a message previously sent by this session."""
