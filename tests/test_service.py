"""Tests for the delegation service and its client."""

import base64
import logging
import socket
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from tubelink.errors import DelegationError, FetchError, InvalidLinkError
from tubelink.parser import VideoParser
from tubelink.service import DelegateClient, DelegationService, VideoPayload, create_app, start_service
from tubelink.transport import HostTransport

from conftest import PNG_BYTES, THUMBNAIL_BYTES, FakeRenderer

PEER = "http://peer.local"


@pytest.fixture
def parser(sample_metadata):
    parser = MagicMock(spec=VideoParser)
    parser.parse = AsyncMock(return_value=sample_metadata)
    return parser


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def client(parser, renderer):
    return TestClient(create_app(parser, renderer))


class TestVideoPayload:
    def test_wire_names(self, sample_metadata):
        wire = VideoPayload.from_metadata(sample_metadata).to_wire()
        assert set(wire) == {
            "coverThumlnail", "coverMime", "titleText", "channelText",
            "publishTimeText", "descriptionText", "tagText", "viewCountText",
        }
        assert base64.b64decode(wire["coverThumlnail"]) == THUMBNAIL_BYTES

    def test_back_to_metadata(self, sample_metadata):
        payload = VideoPayload.model_validate(VideoPayload.from_metadata(sample_metadata).to_wire())
        metadata = payload.to_metadata()
        assert metadata.thumbnail == THUMBNAIL_BYTES
        assert metadata.title == sample_metadata.title
        assert metadata.view_count == sample_metadata.view_count

    def test_bad_base64(self, sample_metadata):
        wire = VideoPayload.from_metadata(sample_metadata).to_wire()
        wire["coverThumlnail"] = "not base64!!"
        with pytest.raises(ValueError):
            VideoPayload.model_validate(wire).to_metadata()


class TestParseEndpoint:
    def test_success(self, client, parser):
        response = client.post("/parse", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
        assert response.status_code == 200
        body = response.json()
        assert body["titleText"] == "Never Gonna Give You Up"
        assert body["viewCountText"] == "1,234,567"
        assert base64.b64decode(body["coverThumlnail"]) == THUMBNAIL_BYTES
        parser.parse.assert_awaited_once_with("https://youtu.be/dQw4w9WgXcQ")

    def test_missing_url(self, client, parser):
        response = client.post("/parse", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "URL is required"}
        parser.parse.assert_not_called()

    def test_malformed_body(self, client):
        response = client.post("/parse", content=b"not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_upstream_failure(self, client, parser):
        parser.parse.side_effect = FetchError("dQw4w9WgXcQ", "quota exceeded")
        response = client.post("/parse", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
        assert response.status_code == 500
        assert "quota exceeded" in response.json()["error"]

    def test_invalid_link(self, client, parser):
        parser.parse.side_effect = InvalidLinkError("nope")
        response = client.post("/parse", json={"url": "nope"})
        assert response.status_code == 500
        assert "Invalid YouTube URL" in response.json()["error"]


class TestRenderFromUrlEndpoint:
    def test_success(self, client, renderer):
        response = client.post("/render-from-url", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
        assert response.status_code == 200
        assert base64.b64decode(response.json()["imageBase64"]) == PNG_BYTES
        assert len(renderer.rendered) == 1

    def test_missing_url(self, client):
        response = client.post("/render-from-url", json={"url": ""})
        assert response.status_code == 400

    def test_renderer_produces_nothing(self, parser):
        client = TestClient(create_app(parser, FakeRenderer(image=None)))
        response = client.post("/render-from-url", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to render image."}

    def test_no_renderer(self, parser):
        client = TestClient(create_app(parser, None))
        response = client.post("/render-from-url", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
        assert response.status_code == 500


class TestRenderEndpoint:
    def test_renders_without_fetching(self, client, parser, renderer, sample_metadata):
        wire = VideoPayload.from_metadata(sample_metadata).to_wire()
        response = client.post("/render", json=wire)
        assert response.status_code == 200
        assert base64.b64decode(response.json()["imageBase64"]) == PNG_BYTES
        parser.parse.assert_not_called()
        # thumbnail travels into the card as a data URL
        assert base64.b64encode(THUMBNAIL_BYTES).decode() in renderer.rendered[0]

    def test_incomplete_payload(self, client):
        response = client.post("/render", json={"titleText": "only"})
        assert response.status_code == 400

    def test_render_failure(self, parser, sample_metadata):
        client = TestClient(create_app(parser, FakeRenderer(image=None)))
        response = client.post("/render", json=VideoPayload.from_metadata(sample_metadata).to_wire())
        assert response.status_code == 500


class TestStartService:
    @pytest.mark.asyncio
    async def test_disabled(self, make_settings, parser, renderer):
        assert await start_service(make_settings(enable_service=False), parser, renderer) is None

    @pytest.mark.asyncio
    async def test_no_renderer(self, make_settings, parser):
        assert await start_service(make_settings(enable_service=True), parser, None) is None


class TestServiceLifecycle:
    """uvicorn bound to a real local port."""

    @staticmethod
    def _free_port() -> int:
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            return sock.getsockname()[1]

    @pytest.mark.asyncio
    async def test_start_and_stop(self, make_settings, parser, renderer):
        port = self._free_port()
        settings = make_settings(enable_service=True, service_host="127.0.0.1", service_port=port)
        service = await start_service(settings, parser, renderer)
        assert service is not None
        try:
            assert service.running
            async with httpx.AsyncClient(trust_env=False) as http:
                response = await http.post(f"http://127.0.0.1:{port}/parse", json={})
            assert response.status_code == 400
        finally:
            await service.stop()
        assert not service.running

    @pytest.mark.asyncio
    async def test_port_in_use(self, make_settings, parser, renderer, caplog):
        with socket.socket() as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen()
            port = taken.getsockname()[1]
            settings = make_settings(enable_service=True, service_host="127.0.0.1", service_port=port)

            service = DelegationService(settings, parser, renderer)
            with caplog.at_level(logging.INFO, logger="tubelink.service"):
                started = await service.start()

        assert started is False
        assert not service.running
        messages = [r.getMessage() for r in caplog.records if r.name == "tubelink.service"]
        assert not any("listening" in m for m in messages)
        assert any("could not bind" in m for m in messages)

    @pytest.mark.asyncio
    async def test_start_service_returns_none_when_port_in_use(self, make_settings, parser, renderer):
        with socket.socket() as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen()
            settings = make_settings(
                enable_service=True, service_host="127.0.0.1", service_port=taken.getsockname()[1],
            )
            assert await start_service(settings, parser, renderer) is None


class TestDelegateClient:
    """Client against the real app over ASGITransport."""

    def _client(self, parser, renderer) -> DelegateClient:
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=create_app(parser, renderer)))
        return DelegateClient(HostTransport(http), PEER + "/")

    @pytest.mark.asyncio
    async def test_parse(self, parser, renderer):
        metadata = await self._client(parser, renderer).parse("https://youtu.be/dQw4w9WgXcQ")
        assert metadata.title == "Never Gonna Give You Up"
        assert metadata.thumbnail == THUMBNAIL_BYTES

    @pytest.mark.asyncio
    async def test_render_from_url(self, parser, renderer):
        image = await self._client(parser, renderer).render_from_url("https://youtu.be/dQw4w9WgXcQ")
        assert image == PNG_BYTES

    @pytest.mark.asyncio
    async def test_render_payload(self, parser, renderer, sample_metadata):
        image = await self._client(parser, renderer).render_payload(sample_metadata)
        assert image == PNG_BYTES
        parser.parse.assert_not_called()

    @pytest.mark.asyncio
    async def test_peer_error_propagates(self, parser, renderer):
        parser.parse.side_effect = FetchError("dQw4w9WgXcQ", "quota exceeded")
        with pytest.raises(DelegationError) as exc_info:
            await self._client(parser, renderer).parse("https://youtu.be/dQw4w9WgXcQ")
        assert exc_info.value.status_code == 500
        assert "quota exceeded" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        def handler(request):
            return httpx.Response(200, json={"something": "else"})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = DelegateClient(HostTransport(http), PEER)
        with pytest.raises(DelegationError):
            await client.render_from_url("https://youtu.be/dQw4w9WgXcQ")
