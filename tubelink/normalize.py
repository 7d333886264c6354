"""Raw API response → VideoMetadata.

Pure functions: the same response and policy always give the same result.
"""

from typing import Optional

from .config import DescriptionPolicy
from .errors import MalformedResponseError, NoVideoDataError
from .fetcher import VideoListResponse, select_thumbnail
from .models import VideoMetadata

VIEW_COUNT_UNKNOWN = "unknown"
NO_TAGS = "no tags"
DESCRIPTION_HIDDEN = "[DESCRIPTION HAS BEEN HIDDEN.]"


def format_view_count(raw: Optional[str]) -> str:
    """Render a view count with thousands separators, or the unknown sentinel."""
    if raw is None or raw == "":
        return VIEW_COUNT_UNKNOWN
    try:
        return f"{int(raw):,}"
    except (TypeError, ValueError):
        return VIEW_COUNT_UNKNOWN


def format_tags(tags: Optional[list[str]]) -> str:
    if not tags:
        return NO_TAGS
    if len(tags) == 1:
        return tags[0]
    return ", ".join(tags)


def apply_description_policy(description: Optional[str], policy: DescriptionPolicy) -> str:
    """Hide or truncate a description.

    Hidden descriptions become a fixed placeholder whatever their length,
    empty included. Otherwise anything past `max_length` is cut and a
    suffix reports how many characters were dropped.
    """
    if policy.hide:
        return DESCRIPTION_HIDDEN
    description = description or ""
    if len(description) > policy.max_length:
        omitted = len(description) - policy.max_length
        return description[:policy.max_length] + f"...({omitted} characters omitted)"
    return description


def normalize(
    response: VideoListResponse,
    policy: DescriptionPolicy,
    video_id: str = "",
    thumbnail: bytes = b"",
) -> VideoMetadata:
    """Map the first item of a videos list into VideoMetadata.

    The thumbnail bytes are usually attached afterwards by the parser,
    once the selected URL has been downloaded.

    Raises:
        NoVideoDataError: the list is empty
        MalformedResponseError: the item has no usable thumbnail
    """
    if not response.items:
        raise NoVideoDataError(video_id)

    item = response.items[0]
    snippet = item.snippet
    statistics = item.statistics

    selected = select_thumbnail(snippet.thumbnails)
    if selected is None:
        raise MalformedResponseError(video_id or item.id, "no thumbnail in snippet")
    thumbnail_url, mime = selected

    return VideoMetadata(
        title=snippet.title,
        channel=snippet.channelTitle,
        publish_time=snippet.publishedAt,
        description=apply_description_policy(snippet.description, policy),
        tags=format_tags(snippet.tags),
        view_count=format_view_count(statistics.viewCount if statistics else None),
        thumbnail=thumbnail,
        thumbnail_mime=mime,
        thumbnail_url=thumbnail_url,
    )
