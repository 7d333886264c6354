"""Tests for transport selection and proxy mapping."""

import httpx
import pytest
from httpx_socks import AsyncProxyTransport

from tubelink.config import TransportPolicy
from tubelink.transport import (
    HostTransport,
    StandaloneTransport,
    build_proxied_client,
    create_transport,
    socks_proxy_args,
)


class TestSocksProxyArgs:
    def test_socks5(self):
        policy = TransportPolicy(proxy_protocol="socks5", proxy_host="10.0.0.1", proxy_port=1080)
        assert socks_proxy_args(policy) == ("socks5://10.0.0.1:1080", False)

    def test_socks5h_resolves_remotely(self):
        policy = TransportPolicy(proxy_protocol="socks5h", proxy_host="proxy", proxy_port=1080)
        assert socks_proxy_args(policy) == ("socks5://proxy:1080", True)

    def test_socks4(self):
        policy = TransportPolicy(proxy_protocol="socks4", proxy_host="proxy", proxy_port=1080)
        assert socks_proxy_args(policy) == ("socks4://proxy:1080", False)

    def test_http_is_not_socks(self):
        with pytest.raises(ValueError):
            socks_proxy_args(TransportPolicy(proxy_protocol="http"))


class TestBuildProxiedClient:
    @pytest.mark.asyncio
    async def test_socks_uses_proxy_transport(self):
        client = build_proxied_client(TransportPolicy(proxy_protocol="socks5h"))
        try:
            assert isinstance(client._transport, AsyncProxyTransport)
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_http_proxy(self):
        client = build_proxied_client(TransportPolicy(proxy_protocol="http", timeout=5.0))
        try:
            assert isinstance(client, httpx.AsyncClient)
            assert client.timeout.read == 5.0
        finally:
            await client.aclose()


class TestCreateTransport:
    @pytest.mark.asyncio
    async def test_host(self, make_settings):
        client = httpx.AsyncClient()
        try:
            transport = create_transport(make_settings(transport="host"), client)
            assert isinstance(transport, HostTransport)
            assert transport.name == "host"
        finally:
            await client.aclose()

    def test_host_without_client(self, make_settings):
        with pytest.raises(ValueError):
            create_transport(make_settings(transport="host"), None)

    @pytest.mark.asyncio
    async def test_standalone(self, make_settings):
        settings = make_settings(transport="standalone", proxy_protocol="socks5", user_agent="ua/1")
        transport = create_transport(settings, None)
        try:
            assert isinstance(transport, StandaloneTransport)
            assert transport.policy.user_agent == "ua/1"
            assert transport.policy.proxy_url == "socks5://127.0.0.1:7890"
        finally:
            await transport.aclose()
