"""Delegation client — asks a peer instance to parse or render for us."""

import logging

import httpx
from pydantic import ValidationError

from ..errors import DelegationError
from ..models import VideoMetadata
from ..transport import Transport
from .schemas import ImageResponse, VideoPayload

logger = logging.getLogger("tubelink.service.client")


def _peer_error(response: httpx.Response) -> str:
    """Pull the {"error": ...} message out of a failed peer response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase


class DelegateClient:
    """POSTs {url} to the peer's endpoints and adapts the answers.

    Any network failure or non-2xx answer raises DelegationError. There is
    no local fallback.
    """

    def __init__(self, transport: Transport, base_url: str):
        self.transport = transport
        self.base_url = base_url.rstrip("/")

    async def _post(self, endpoint: str, payload: dict) -> dict:
        target = f"{self.base_url}/{endpoint}"
        try:
            return await self.transport.post_json(target, payload)
        except httpx.HTTPStatusError as e:
            reason = _peer_error(e.response)
            logger.error(f"Delegate call failed: {target} (HTTP {e.response.status_code}): {reason}")
            raise DelegationError(endpoint, reason, e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Delegate call failed: {target}: {e}")
            raise DelegationError(endpoint, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise DelegationError(endpoint, "peer answered with a non-JSON body") from e

    async def parse(self, url: str) -> VideoMetadata:
        """Remote fetch + normalize. The thumbnail comes back as bytes."""
        body = await self._post("parse", {"url": url})
        try:
            return VideoPayload.model_validate(body).to_metadata()
        except (ValidationError, ValueError) as e:
            raise DelegationError("parse", f"unexpected payload from peer: {e}") from e

    async def render_from_url(self, url: str) -> bytes:
        """Remote fetch + normalize + render. Returns PNG bytes."""
        body = await self._post("render-from-url", {"url": url})
        return self._image(body, "render-from-url")

    async def render_payload(self, metadata: VideoMetadata) -> bytes:
        """Render already-normalized metadata on the peer without refetching."""
        body = await self._post("render", VideoPayload.from_metadata(metadata).to_wire())
        return self._image(body, "render")

    @staticmethod
    def _image(body: dict, endpoint: str) -> bytes:
        try:
            return ImageResponse.model_validate(body).to_bytes()
        except (ValidationError, ValueError) as e:
            raise DelegationError(endpoint, f"unexpected payload from peer: {e}") from e
