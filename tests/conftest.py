"""Pytest configuration and shared fixtures."""

import copy
from typing import Any, Optional

import pytest

from tubelink.config import TubelinkSettings
from tubelink.models import ChatSession, OutboundMessage, VideoMetadata
from tubelink.render import Renderer

VIDEO_ID = "dQw4w9WgXcQ"
THUMBNAIL_URL = "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"
THUMBNAIL_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"

API_RESPONSE = {
    "kind": "youtube#videoListResponse",
    "items": [
        {
            "id": VIDEO_ID,
            "snippet": {
                "title": "Never Gonna Give You Up",
                "description": "The official video.",
                "channelTitle": "Rick Astley",
                "publishedAt": "2009-10-25T06:57:33Z",
                "tags": ["rick astley", "never gonna give you up"],
                "thumbnails": {
                    "default": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg", "width": 120, "height": 90},
                    "high": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg", "width": 480, "height": 360},
                    "maxres": {"url": THUMBNAIL_URL, "width": 1280, "height": 720},
                },
            },
            "statistics": {"viewCount": "1234567", "likeCount": "100"},
        }
    ],
}


class FakeSession(ChatSession):
    """Records everything the coordinator sends or deletes."""

    def __init__(self, fail_on_send: Optional[int] = None):
        self.sent: list[OutboundMessage] = []
        self.deleted: list[Any] = []
        self._next_id = 100
        self._fail_on_send = fail_on_send

    async def send(self, message: OutboundMessage) -> Any:
        if self._fail_on_send is not None and len(self.sent) == self._fail_on_send:
            self._fail_on_send = None
            raise RuntimeError("chat host unavailable")
        self.sent.append(message)
        self._next_id += 1
        return self._next_id

    async def delete_message(self, message_id: Any) -> None:
        self.deleted.append(message_id)

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.sent]


class FakeRenderer(Renderer):
    """Returns fixed bytes and remembers the HTML it was given."""

    def __init__(self, image: Optional[bytes] = PNG_BYTES):
        self.image = image
        self.rendered: list[str] = []
        self.stopped = False

    async def render(self, html: str) -> Optional[bytes]:
        self.rendered.append(html)
        return self.image

    async def stop(self) -> None:
        self.stopped = True


@pytest.fixture
def make_settings():
    """Build settings without reading .env."""
    def _make(**overrides) -> TubelinkSettings:
        overrides.setdefault("youtube_api_key", "test-key")
        return TubelinkSettings(_env_file=None, **overrides)
    return _make


@pytest.fixture
def api_response() -> dict:
    return copy.deepcopy(API_RESPONSE)


@pytest.fixture
def sample_metadata() -> VideoMetadata:
    return VideoMetadata(
        title="Never Gonna Give You Up",
        channel="Rick Astley",
        publish_time="2009-10-25T06:57:33Z",
        description="[DESCRIPTION HAS BEEN HIDDEN.]",
        tags="rick astley, never gonna give you up",
        view_count="1,234,567",
        thumbnail=THUMBNAIL_BYTES,
        thumbnail_mime="image/jpg",
        thumbnail_url=THUMBNAIL_URL,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
