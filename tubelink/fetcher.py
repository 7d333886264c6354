"""YouTube Data API v3 client.

Fetches the `videos` resource for one id and downloads the best thumbnail.
The JSON body is validated against a small pydantic schema right after the
request, so a malformed upstream answer fails here with a clear message
instead of surfacing as a KeyError deep in formatting.
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import FetchError, MalformedResponseError
from .transport import Transport

logger = logging.getLogger("tubelink.fetcher")

API_ENDPOINT = "https://www.googleapis.com/youtube/v3/videos"
API_PARTS = "snippet,contentDetails,statistics,status"

# Best first. maxres is missing on many older uploads.
THUMBNAIL_PREFERENCE = ("maxres", "standard", "high", "medium", "default")


# ============================================================
# RESPONSE SCHEMA
# ============================================================

class Thumbnail(BaseModel):
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class Thumbnails(BaseModel):
    default: Optional[Thumbnail] = None
    medium: Optional[Thumbnail] = None
    high: Optional[Thumbnail] = None
    standard: Optional[Thumbnail] = None
    maxres: Optional[Thumbnail] = None


class Snippet(BaseModel):
    title: str
    description: Optional[str] = ""
    channelTitle: str
    publishedAt: str
    tags: Optional[list[str]] = None
    thumbnails: Thumbnails


class Statistics(BaseModel):
    # The API sends counts as strings; some videos hide them entirely.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    viewCount: Optional[str] = None


class VideoItem(BaseModel):
    id: str = ""
    snippet: Snippet
    statistics: Optional[Statistics] = None


class VideoListResponse(BaseModel):
    items: list[VideoItem] = []


# ============================================================
# THUMBNAILS
# ============================================================

def select_thumbnail(thumbnails: Thumbnails) -> Optional[tuple[str, str]]:
    """Pick the highest resolution thumbnail.

    Returns:
        (url, mime) or None if the response carries no thumbnail at all.
        The MIME type is ``image/`` plus the URL's file extension.
    """
    for size in THUMBNAIL_PREFERENCE:
        thumb = getattr(thumbnails, size)
        if thumb and thumb.url:
            return thumb.url, thumbnail_mime(thumb.url)
    return None


def thumbnail_mime(url: str) -> str:
    return "image/" + url[url.rfind(".") + 1:]


# ============================================================
# FETCHER
# ============================================================

class MetadataFetcher:
    """Talks to the YouTube API through a pluggable Transport."""

    def __init__(self, transport: Transport, api_key: str):
        self.transport = transport
        self._api_key = api_key

    async def fetch_metadata(self, video_id: str) -> VideoListResponse:
        """GET the videos resource for `video_id`.

        Raises:
            FetchError: network error or non-2xx status
            MalformedResponseError: body is not a videos list
        """
        params = {"id": video_id, "key": self._api_key, "part": API_PARTS}
        try:
            data = await self.transport.get_json(API_ENDPOINT, params=params)
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to fetch data from YouTube API for id: {video_id} (HTTP {e.response.status_code})")
            raise FetchError(video_id, f"YouTube API returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch data from YouTube API for id: {video_id}: {e}")
            raise FetchError(video_id, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise MalformedResponseError(video_id, "body is not JSON") from e

        try:
            return VideoListResponse.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ()))
            raise MalformedResponseError(video_id, f"{where}: {first.get('msg')}") from e

    async def fetch_thumbnail(self, url: str, video_id: str = "") -> bytes:
        """Download the thumbnail image bytes."""
        try:
            return await self.transport.get_bytes(url)
        except httpx.HTTPError as e:
            logger.error(f"Failed to download thumbnail from: {url}")
            raise FetchError(video_id, f"thumbnail download failed: {type(e).__name__}: {e}") from e
