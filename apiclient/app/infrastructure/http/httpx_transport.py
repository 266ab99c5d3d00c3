"""Concrete transport implementation using httpx (injected where AbstractHttpTransport is needed)."""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable

import httpx

from apiclient.app.domain.cancellation import CancellationToken
from apiclient.app.domain.prepared_message import PreparedMessage
from apiclient.app.ports.http_transport import (
    AbstractHttpTransport,
    RawResponse,
    TransportCancelledError,
    TransportError,
    TransportStatusError,
    TransportTimeoutError,
)


class _HttpxResponseAdapter:
    """Adapts an httpx.Response whose body was read during the attempt to the RawResponse protocol."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def url(self) -> str:
        return str(self._response.url)

    @property
    def content_type(self) -> str | None:
        return self._response.headers.get("content-type")

    async def read(self) -> bytes:
        return await self._response.aread()

    async def text(self) -> str:
        await self._response.aread()
        return self._response.text

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.aiter_bytes():
            yield chunk

    async def close(self) -> None:
        await self._response.aclose()


class HttpxTransport(AbstractHttpTransport):
    """AbstractHttpTransport implementation using httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def build_request(self, message: PreparedMessage, timeout: float | None) -> httpx.Request:
        headers = message.headers
        content: Any = None
        if message.body is not None:
            present = {name.lower() for name, _ in headers}
            headers.extend(
                (name, value) for name, value in message.body.content_headers if name.lower() not in present
            )
            content = message.body.content if message.body.is_buffered else message.body.aiter_chunks()
        return self._client.build_request(
            message.method,
            message.url,
            headers=headers,
            content=content,
            timeout=httpx.Timeout(timeout),
        )

    async def send(
        self,
        message: PreparedMessage,
        *,
        timeout: float | None,
        cancel_token: CancellationToken | None = None,
    ) -> RawResponse:
        target = f"{message.method} {message.url}"
        try:
            request = self.build_request(message, timeout)
            response = await self._race(self._fetch(request), timeout, cancel_token, target)
        except httpx.TimeoutException as exc:
            raise TransportTimeoutError(f"timeout while sending {target}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"http request failed for {target}: {exc}") from exc

        if not response.is_success:
            status_code = response.status_code
            await response.aclose()
            raise TransportStatusError(f"http status {status_code} for {target}", status_code)
        return _HttpxResponseAdapter(response)

    async def _fetch(self, request: httpx.Request) -> httpx.Response:
        """Send and read the whole body, so a stalled body counts against the attempt."""
        response = await self._client.send(request, stream=True)
        try:
            await response.aread()
        except BaseException:
            await response.aclose()
            raise
        return response

    async def _race(
        self,
        send: Awaitable[httpx.Response],
        timeout: float | None,
        cancel_token: CancellationToken | None,
        target: str,
    ) -> httpx.Response:
        """Await send unless the deadline passes or the caller cancels first."""
        send_task = asyncio.ensure_future(send)
        waiters: set[asyncio.Future[Any]] = {send_task}
        cancel_waiter: asyncio.Future[Any] | None = None
        if cancel_token is not None:
            cancel_waiter = asyncio.ensure_future(cancel_token.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send_task.cancel()
            raise
        finally:
            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()

        if send_task in done:
            return send_task.result()

        send_task.cancel()
        try:
            late = await send_task
        except (asyncio.CancelledError, httpx.HTTPError):
            late = None
        if late is not None:
            await late.aclose()

        if cancel_token is not None and cancel_token.is_cancelled:
            raise TransportCancelledError(f"request cancelled: {target}")
        raise TransportTimeoutError(f"timeout after {timeout}s while sending {target}")
