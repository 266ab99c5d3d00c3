"""Transport-ready request message: one per physical attempt, cloned for retries."""
from __future__ import annotations

import inspect
from typing import Any, AsyncIterator, Iterable

BodySource = Any  # bytes, binary file-like, Iterable[bytes] or AsyncIterable[bytes]

_CHUNK_SIZE = 64 * 1024


class BodyNotReplayableError(RuntimeError):
    """Raised when a streaming body is cloned before it was buffered."""


class MessageClosedError(RuntimeError):
    """Raised when a released message is used again."""


class MessageBody:
    """
    Request body as seen by the transport.

    Starts either buffered (bytes) or as a live source. A live source can be sent
    once; buffer() reads it to completion so the body can be cloned for retries.
    """

    def __init__(self, source: BodySource, content_headers: Iterable[tuple[str, str]] = ()) -> None:
        if isinstance(source, str):
            source = source.encode("utf-8")
        self._source = source
        self._buffered: bytes | None = (
            bytes(source) if isinstance(source, (bytes, bytearray, memoryview)) else None
        )
        self._content_headers = [(str(k), str(v)) for k, v in content_headers]

    @property
    def is_buffered(self) -> bool:
        return self._buffered is not None

    @property
    def content(self) -> bytes:
        if self._buffered is None:
            raise BodyNotReplayableError("body has not been buffered")
        return self._buffered

    @property
    def content_headers(self) -> list[tuple[str, str]]:
        return list(self._content_headers)

    @property
    def content_type(self) -> str | None:
        for name, value in self._content_headers:
            if name.lower() == "content-type":
                return value
        return None

    async def buffer(self) -> bytes:
        if self._buffered is None:
            self._buffered = await _read_all(self._source)
        return self._buffered

    async def aiter_chunks(self) -> AsyncIterator[bytes]:
        if self._buffered is not None:
            yield self._buffered
            return
        source = self._source
        if hasattr(source, "read"):
            while True:
                chunk = source.read(_CHUNK_SIZE)
                if inspect.isawaitable(chunk):
                    chunk = await chunk
                if not chunk:
                    break
                yield bytes(chunk)
        elif hasattr(source, "__aiter__"):
            async for chunk in source:
                yield bytes(chunk)
        else:
            for chunk in source:
                yield bytes(chunk)

    def clone(self) -> "MessageBody":
        if self._buffered is None:
            raise BodyNotReplayableError("streaming body must be buffered before it can be cloned")
        return MessageBody(self._buffered, self._content_headers)

    def close(self) -> None:
        if isinstance(self._source, (bytes, bytearray, memoryview)):
            return
        close = getattr(self._source, "close", None)
        if callable(close) and not inspect.iscoroutinefunction(close):
            close()


class PreparedMessage:
    """Fully-resolved request: final URL, merged headers, attached body. Single use."""

    def __init__(
        self,
        method: str,
        url: str,
        headers: Iterable[tuple[str, str]] = (),
        body: MessageBody | None = None,
        *,
        http_version: str = "HTTP/1.1",
    ) -> None:
        self.method = method.upper()
        self.url = url
        self.http_version = http_version
        self._headers = [(str(k), str(v)) for k, v in headers]
        self.body = body
        self._closed = False

    @property
    def headers(self) -> list[tuple[str, str]]:
        return list(self._headers)

    @property
    def closed(self) -> bool:
        return self._closed

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self._headers:
            if key.lower() == wanted:
                return value
        return None

    async def buffer_body(self) -> None:
        if self._closed:
            raise MessageClosedError("message has been released")
        if self.body is not None:
            await self.body.buffer()

    def clone(self) -> "PreparedMessage":
        """Copy method, URL, version and headers verbatim; the body gets a fresh readable copy."""
        body = self.body.clone() if self.body is not None else None
        return PreparedMessage(
            self.method,
            self.url,
            self._headers,
            body,
            http_version=self.http_version,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.body is not None:
            self.body.close()

    def __repr__(self) -> str:
        return f"PreparedMessage({self.method} {self.url}, headers={len(self._headers)})"


async def _read_all(source: BodySource) -> bytes:
    if hasattr(source, "read"):
        data = source.read()
        if inspect.isawaitable(data):
            data = await data
        return bytes(data or b"")
    if hasattr(source, "__aiter__"):
        return b"".join([bytes(chunk) async for chunk in source])
    return b"".join(bytes(chunk) for chunk in source)
