"""Tests for process wiring."""

from unittest.mock import AsyncMock, patch

import pytest

from tubelink.main import Runtime, needs_renderer, run
from tubelink.transport import HostTransport, StandaloneTransport


class TestNeedsRenderer:
    def test_text_only(self, make_settings):
        assert not needs_renderer(make_settings(output_forms=["text"]))

    def test_standalone_image(self, make_settings):
        assert needs_renderer(make_settings(output_forms=["image"]))

    def test_delegate_image_renders_remotely(self, make_settings):
        assert not needs_renderer(make_settings(work_mode="delegate", output_forms=["image"]))

    def test_service(self, make_settings):
        assert needs_renderer(make_settings(enable_service=True))


class TestRuntime:
    @pytest.mark.asyncio
    async def test_nothing_to_run(self, make_settings):
        """No bot token and no service: run() returns and tears down."""
        settings = make_settings(telegram_bot_token=None)
        with patch("tubelink.main.start_renderer", new=AsyncMock()) as start_renderer:
            await run(settings)
        start_renderer.assert_not_called()

    @pytest.mark.asyncio
    async def test_delegate_wiring(self, make_settings):
        runtime = Runtime(make_settings(work_mode="delegate", delegate_url="http://peer:8020/"))
        await runtime.start(with_channel=False)
        try:
            assert runtime.delegate.base_url == "http://peer:8020"
            assert runtime.service is None
            assert runtime.renderer is None
        finally:
            await runtime.stop()
        assert runtime.host_client.is_closed

    @pytest.mark.asyncio
    async def test_delegate_bypasses_proxy(self, make_settings):
        """Peer calls use the host client even when YouTube goes through a proxy."""
        settings = make_settings(
            work_mode="delegate", transport="standalone", proxy_host="127.0.0.1", proxy_port=1,
        )
        runtime = Runtime(settings)
        await runtime.start(with_channel=False)
        try:
            assert isinstance(runtime.transport, StandaloneTransport)
            assert isinstance(runtime.delegate.transport, HostTransport)
            assert runtime.delegate.transport._client is runtime.host_client
        finally:
            await runtime.stop()
