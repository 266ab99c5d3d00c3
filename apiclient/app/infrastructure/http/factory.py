"""Transport factory: builds named httpx transports from settings (no provider logic in composition)."""
from __future__ import annotations

import httpx

from apiclient.app.config.settings import Settings
from apiclient.app.infrastructure.http.httpx_transport import HttpxTransport
from apiclient.app.ports.http_transport import AbstractHttpTransport, TransportFactory


class HttpxTransportFactory(TransportFactory):
    """Holds the default transport and any named, pre-configured ones."""

    def __init__(self, default_client: httpx.AsyncClient) -> None:
        self._default = HttpxTransport(default_client)
        self._named: dict[str, HttpxTransport] = {}

    @property
    def names(self) -> list[str]:
        return list(self._named)

    def register(self, name: str, client: httpx.AsyncClient) -> None:
        if not name:
            raise ValueError("named client requires a non-empty name")
        self._named[name] = HttpxTransport(client)

    def get(self, name: str | None = None) -> AbstractHttpTransport:
        if not name:
            return self._default
        return self._named[name]

    async def close(self) -> None:
        for transport in [self._default, *self._named.values()]:
            await transport.client.aclose()


def create_async_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Timeouts are applied per attempt by the transport, not on the client."""
    headers = {"User-Agent": settings.user_agent} if settings.user_agent else None
    return httpx.AsyncClient(
        headers=headers,
        follow_redirects=settings.follow_redirects,
        verify=settings.verify_tls,
        transport=transport,
    )


def create_transport_factory(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpxTransportFactory:
    return HttpxTransportFactory(create_async_client(settings, transport=transport))
