"""HTTP transport port: contract for sending one physical request.

Application code depends on this port; infrastructure (e.g. httpx) implements it.
The raised exception encodes why an attempt did not produce a 2xx response.
"""
from __future__ import annotations

from typing import AsyncIterator, Mapping, Protocol, runtime_checkable

from apiclient.app.domain.cancellation import CancellationToken
from apiclient.app.domain.prepared_message import PreparedMessage


class TransportError(Exception):
    """Base for transport failures (network, protocol, etc.)."""


class TransportTimeoutError(TransportError):
    """Raised when an attempt exceeds its per-attempt deadline."""


class TransportCancelledError(TransportError):
    """Raised when the caller's cancellation token aborted the attempt."""


class TransportStatusError(TransportError):
    """Raised when the server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class RawResponse(Protocol):
    """Minimal view of a 2xx response. The body was read within the attempt that produced it."""

    @property
    def status_code(self) -> int: ...

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def url(self) -> str: ...

    @property
    def content_type(self) -> str | None: ...

    async def read(self) -> bytes: ...

    async def text(self) -> str: ...

    def iter_bytes(self) -> AsyncIterator[bytes]: ...

    async def close(self) -> None: ...


@runtime_checkable
class AbstractHttpTransport(Protocol):
    """Port: send one prepared message. Implementations live in infrastructure."""

    async def send(
        self,
        message: PreparedMessage,
        *,
        timeout: float | None,
        cancel_token: CancellationToken | None = None,
    ) -> RawResponse:
        """Send once; raise a TransportError subclass unless the status is 2xx."""
        ...


@runtime_checkable
class TransportFactory(Protocol):
    """Port: select a pre-configured transport by name."""

    def get(self, name: str | None = None) -> AbstractHttpTransport:
        """Empty or None selects the default transport; unknown names raise KeyError."""
        ...

    async def close(self) -> None:
        """Release resources (e.g. connection pools). No-op allowed if nothing to close."""
        ...
