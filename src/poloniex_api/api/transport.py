"""HTTP transport boundary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Protocol

import aiohttp

from ..errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class HttpResponse:
    status: int
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Performs a single HTTP exchange."""

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: str | None = None,
    ) -> HttpResponse:
        """Send the request and return status and raw body.

        Raises:
            TransportError: On network, DNS or TLS failure
        """
        ...

    async def close(self) -> None:
        ...


class ProxyConfig:
    """HTTP proxy configuration."""

    def __init__(self, url: str | None = None, username: str | None = None, password: str | None = None):
        self.url = url
        self.username = username
        self.password = password

    @property
    def proxy_url(self) -> str | None:
        if not self.url:
            return None
        if self.username and self.password:
            protocol = self.url.split("://")[0] if "://" in self.url else "http"
            rest = self.url.split("://")[1] if "://" in self.url else self.url
            return f"{protocol}://{self.username}:{self.password}@{rest}"
        return self.url


class AiohttpTransport:
    """Transport backed by a lazily created ``aiohttp.ClientSession``."""

    def __init__(self, *, timeout_seconds: float = 30.0, proxy: ProxyConfig | None = None):
        self.timeout_seconds = timeout_seconds
        self.proxy = proxy or ProxyConfig()
        self.session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: str | None = None,
    ) -> HttpResponse:
        session = await self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                headers=dict(headers),
                data=body,
                proxy=self.proxy.proxy_url,
            ) as resp:
                payload = await resp.read()
                return HttpResponse(resp.status, payload)
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TransportError(f"Could not execute {method} request: {exc}") from exc

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
