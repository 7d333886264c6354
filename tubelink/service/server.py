"""Delegation service — lets another instance hand its parsing/rendering to us.

Endpoints (JSON in, JSON out):
  POST /parse            {url}            → VideoPayload
  POST /render-from-url  {url}            → {imageBase64}
  POST /render           VideoPayload     → {imageBase64}

Errors come back as {"error": "..."}: 400 for a missing url or a malformed
body, 500 when fetching, parsing or rendering fails.
"""

import asyncio
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..config import TubelinkSettings
from ..errors import RenderUnavailableError
from ..models import VideoMetadata
from ..parser import VideoParser
from ..render import Renderer, render_video_card
from .schemas import ErrorResponse, ImageResponse, UrlRequest, VideoPayload

logger = logging.getLogger("tubelink.service")

URL_REQUIRED = "URL is required"
RENDER_FAILED = "Failed to render image."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def create_app(parser: VideoParser, renderer: Optional[Renderer]) -> FastAPI:
    """Build the FastAPI application around a parser and a renderer."""
    app = FastAPI(title="tubelink delegation service")

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request, exc: RequestValidationError):
        logger.warning(f"Rejected malformed body on {request.url.path}: {exc.errors()[:1]}")
        return _error(400, "Invalid request body")

    @app.exception_handler(RenderUnavailableError)
    async def _render_failed(request, exc: RenderUnavailableError):
        return _error(500, str(exc))

    async def _render(metadata: VideoMetadata) -> dict:
        image = await render_video_card(renderer, metadata)
        if not image:
            raise RenderUnavailableError(RENDER_FAILED)
        return ImageResponse.from_bytes(image).model_dump()

    @app.post("/parse")
    async def parse(body: UrlRequest):
        if not body.url:
            return _error(400, URL_REQUIRED)
        try:
            metadata = await parser.parse(body.url)
        except Exception as e:
            logger.error(f"Error in /parse endpoint: {e}")
            return _error(500, str(e) or "Failed to parse YouTube video")
        return VideoPayload.from_metadata(metadata).to_wire()

    @app.post("/render-from-url")
    async def render_from_url(body: UrlRequest):
        if not body.url:
            return _error(400, URL_REQUIRED)
        try:
            metadata = await parser.parse(body.url)
        except Exception as e:
            logger.error(f"Error in /render-from-url endpoint: {e}")
            return _error(500, str(e) or "Failed to render YouTube video")

        return await _render(metadata)

    @app.post("/render")
    async def render(payload: VideoPayload):
        try:
            metadata = payload.to_metadata()
        except ValueError as e:
            return _error(400, str(e))

        return await _render(metadata)

    return app


class DelegationService:
    """Runs the FastAPI app under uvicorn for the life of the process."""

    def __init__(self, settings: TubelinkSettings, parser: VideoParser, renderer: Optional[Renderer]):
        self.settings = settings
        self.app = create_app(parser, renderer)
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def address(self) -> str:
        return f"http://{self.settings.service_host}:{self.settings.service_port}"

    async def _serve(self):
        try:
            await self._server.serve()
        except SystemExit:
            # uvicorn exits when the socket cannot be bound
            logger.error(f"Delegation service could not bind {self.address}")

    async def start(self) -> bool:
        """Start uvicorn and wait until it is accepting connections.

        Returns:
            False if the server stopped before binding (e.g. port in use)
        """
        config = uvicorn.Config(
            self.app,
            host=self.settings.service_host,
            port=self.settings.service_port,
            log_level="warning",
        )
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(self._serve())

        while not self._server.started and not self._task.done():
            await asyncio.sleep(0.05)

        if not self._server.started:
            await self._task
            self._server = None
            self._task = None
            return False

        logger.info(f"Delegation service listening on {self.address}")
        return True

    async def stop(self):
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._server = None
        self._task = None
        logger.info("Delegation service stopped.")

    async def serve_forever(self):
        """Block until the service exits (used by `tubelink serve`)."""
        if self._task is None and not await self.start():
            return
        await self._task


async def start_service(
    settings: TubelinkSettings,
    parser: VideoParser,
    renderer: Optional[Renderer],
) -> Optional[DelegationService]:
    """Start the service if enabled, a renderer is available and the port binds."""
    if not settings.enable_service:
        logger.info("Delegation service is disabled.")
        return None
    if renderer is None:
        logger.warning("Headless browser is not available, delegation service will not start.")
        return None
    service = DelegationService(settings, parser, renderer)
    if not await service.start():
        return None
    return service
