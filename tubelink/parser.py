"""Fetch + normalize for one link. Used by standalone mode and the service."""

import dataclasses
import logging

from .config import DescriptionPolicy
from .errors import InvalidLinkError
from .extract import extract
from .fetcher import MetadataFetcher
from .models import VideoMetadata
from .normalize import normalize

logger = logging.getLogger("tubelink.parser")


class VideoParser:
    """Turns a URL (or any text containing one) into VideoMetadata."""

    def __init__(self, fetcher: MetadataFetcher, policy: DescriptionPolicy):
        self.fetcher = fetcher
        self.policy = policy

    async def parse(self, url: str) -> VideoMetadata:
        """Extract the id, fetch metadata and thumbnail, normalize.

        Raises:
            InvalidLinkError: no video id in `url`
            FetchError: API or thumbnail failure, or no data for the id
        """
        ref = extract(url)
        if ref is None:
            raise InvalidLinkError(url)

        logger.info(f"Perceived youtube id {ref.video_id}")
        response = await self.fetcher.fetch_metadata(ref.video_id)
        metadata = normalize(response, self.policy, video_id=ref.video_id)
        thumbnail = await self.fetcher.fetch_thumbnail(metadata.thumbnail_url, video_id=ref.video_id)
        return dataclasses.replace(metadata, thumbnail=thumbnail)
