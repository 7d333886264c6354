"""Error taxonomy for the link → metadata → dispatch pipeline.

A message without a YouTube link and a user outside the whitelist are
normal control flow and never raise. Everything here is either a startup
problem (ConfigurationError) or a per-message failure that the dispatch
coordinator catches and reports.
"""

from typing import Optional


class TubelinkError(Exception):
    """Base class for all tubelink errors."""


class ConfigurationError(TubelinkError):
    """Required configuration is missing or inconsistent. Raised at startup."""


class InvalidLinkError(TubelinkError):
    """Text handed to the parser does not contain a YouTube video id."""

    def __init__(self, text: str):
        self.text = text
        super().__init__("Invalid YouTube URL or unable to extract video ID")


class FetchError(TubelinkError):
    """The YouTube API or the thumbnail CDN could not deliver data."""

    def __init__(self, video_id: str, reason: str):
        self.video_id = video_id
        self.reason = reason
        super().__init__(f"Could not fetch video data for id {video_id}: {reason}")


class NoVideoDataError(FetchError):
    """The API answered but returned no item for the id."""

    def __init__(self, video_id: str):
        super().__init__(video_id, "no data for identifier")


class MalformedResponseError(FetchError):
    """The API answered with a body that does not match the expected schema."""

    def __init__(self, video_id: str, detail: str):
        super().__init__(video_id, f"malformed upstream response ({detail})")


class RenderUnavailableError(TubelinkError):
    """The rendering capability is missing or produced no image."""

    def __init__(self, reason: str = "Failed to render image."):
        super().__init__(reason)


class DelegationError(TubelinkError):
    """The delegate peer was unreachable or answered with a non-2xx status."""

    def __init__(self, endpoint: str, reason: str, status_code: Optional[int] = None):
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Delegate call to {endpoint} failed{status}: {reason}")
