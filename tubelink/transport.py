"""Outbound HTTP transports.

Two implementations sit behind one interface:

- HostTransport: wraps the httpx client the host process already owns.
  No custom headers, never closed by us.
- StandaloneTransport: owns its own client, routed through the configured
  proxy and sending the configured User-Agent.

Both raise httpx errors untouched (including HTTPStatusError for non-2xx)
so callers can wrap them with the video id or endpoint they were working on.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from httpx_socks import AsyncProxyTransport

from .config import TransportPolicy, TubelinkSettings

logger = logging.getLogger("tubelink.transport")

HTTP_PROXY_PROTOCOLS = ("http", "https")
SOCKS_PROXY_PROTOCOLS = ("socks4", "socks5", "socks5h")


class Transport(ABC):
    """Minimal HTTP surface the fetcher and the delegate client need."""

    name: str = "transport"

    @abstractmethod
    async def get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET `url` and decode the JSON body."""

    @abstractmethod
    async def get_bytes(self, url: str) -> bytes:
        """GET `url` and return the raw body."""

    @abstractmethod
    async def post_json(self, url: str, payload: dict) -> Any:
        """POST `payload` as JSON and decode the JSON body."""

    async def aclose(self) -> None:
        """Release resources owned by this transport."""


class _HttpxTransport(Transport):
    """Shared request logic for both transports."""

    def __init__(self, client: httpx.AsyncClient, headers: Optional[dict] = None):
        self._client = client
        self._headers = headers or {}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self._client.request(method, url, headers=self._headers, **kwargs)
        response.raise_for_status()
        return response

    async def get_json(self, url: str, params: Optional[dict] = None) -> Any:
        response = await self._request("GET", url, params=params)
        return response.json()

    async def get_bytes(self, url: str) -> bytes:
        response = await self._request("GET", url)
        return response.content

    async def post_json(self, url: str, payload: dict) -> Any:
        response = await self._request("POST", url, json=payload)
        return response.json()


class HostTransport(_HttpxTransport):
    """Uses the host's shared client as-is."""

    name = "host"

    def __init__(self, client: httpx.AsyncClient):
        super().__init__(client)


class StandaloneTransport(_HttpxTransport):
    """Owns a proxied client with a custom User-Agent."""

    name = "standalone"

    def __init__(self, policy: TransportPolicy, client: Optional[httpx.AsyncClient] = None):
        self.policy = policy
        super().__init__(
            client or build_proxied_client(policy),
            headers={"User-Agent": policy.user_agent},
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def socks_proxy_args(policy: TransportPolicy) -> tuple[str, bool]:
    """Map a SOCKS policy to (proxy_url, remote_dns) for httpx-socks.

    socks5h is SOCKS5 with hostname resolution on the proxy side.
    """
    if policy.proxy_protocol not in SOCKS_PROXY_PROTOCOLS:
        raise ValueError(f"Not a SOCKS protocol: {policy.proxy_protocol}")
    if policy.proxy_protocol == "socks5h":
        return f"socks5://{policy.proxy_host}:{policy.proxy_port}", True
    return policy.proxy_url, False


def build_proxied_client(policy: TransportPolicy) -> httpx.AsyncClient:
    """Build the standalone client for the configured proxy protocol."""
    if policy.proxy_protocol in HTTP_PROXY_PROTOCOLS:
        logger.debug(f"Using HTTP proxy {policy.proxy_url}")
        return httpx.AsyncClient(
            proxy=policy.proxy_url,
            timeout=policy.timeout,
            follow_redirects=True,
        )

    proxy_url, rdns = socks_proxy_args(policy)
    logger.debug(f"Using SOCKS proxy {proxy_url} (rdns={rdns})")
    return httpx.AsyncClient(
        transport=AsyncProxyTransport.from_url(proxy_url, rdns=rdns),
        timeout=policy.timeout,
        follow_redirects=True,
    )


def create_transport(settings: TubelinkSettings, host_client: Optional[httpx.AsyncClient]) -> Transport:
    """Pick the transport named in the settings.

    Args:
        settings: Loaded settings
        host_client: The host's shared client (required for transport='host')
    """
    if settings.transport == "standalone":
        logger.info(
            f"Standalone transport via {settings.proxy_protocol} proxy "
            f"{settings.proxy_host}:{settings.proxy_port}"
        )
        return StandaloneTransport(settings.transport_policy())

    if host_client is None:
        raise ValueError("transport='host' needs the host's HTTP client")
    return HostTransport(host_client)
