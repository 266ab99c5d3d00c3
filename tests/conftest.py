from __future__ import annotations

from typing import Any, AsyncIterator, Callable

import httpx
import pytest

from apiclient.app.domain.cancellation import CancellationToken
from apiclient.app.domain.prepared_message import PreparedMessage


class FakeResponse:
    """Implements RawResponse for tests; body is served from memory."""

    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        *,
        content_type: str | None = "text/plain; charset=utf-8",
        headers: dict[str, str] | None = None,
        url: str = "https://api.example.com/",
        chunks: list[bytes | Exception] | None = None,
    ) -> None:
        merged = dict(headers or {})
        if content_type is not None:
            merged.setdefault("Content-Type", content_type)
        self._status_code = status_code
        self._content = content
        self._headers = httpx.Headers(merged)
        self._url = url
        self._chunks = chunks
        self.closed = False

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._headers

    @property
    def url(self) -> str:
        return self._url

    @property
    def content_type(self) -> str | None:
        return self._headers.get("content-type")

    async def read(self) -> bytes:
        return self._content

    async def text(self) -> str:
        return self._content.decode("utf-8")

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks if self._chunks is not None else [self._content]:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    async def close(self) -> None:
        self.closed = True


class SentAttempt:
    def __init__(self, message: PreparedMessage, body: bytes | None, timeout: float | None) -> None:
        self.message = message
        self.method = message.method
        self.url = message.url
        self.headers = message.headers
        self.body = body
        self.timeout = timeout


Outcome = FakeResponse | Exception | Callable[[PreparedMessage, CancellationToken | None], Any]


class ScriptedTransport:
    """Implements AbstractHttpTransport; plays back one outcome per attempt, repeating the last."""

    def __init__(self, *outcomes: Outcome) -> None:
        self._outcomes = list(outcomes) or [FakeResponse()]
        self.attempts: list[SentAttempt] = []

    async def send(
        self,
        message: PreparedMessage,
        *,
        timeout: float | None,
        cancel_token: CancellationToken | None = None,
    ) -> FakeResponse:
        body = None
        if message.body is not None:
            body = b"".join([chunk async for chunk in message.body.aiter_chunks()])
        self.attempts.append(SentAttempt(message, body, timeout))

        index = min(len(self.attempts) - 1, len(self._outcomes) - 1)
        outcome = self._outcomes[index]
        if callable(outcome) and not isinstance(outcome, (FakeResponse, Exception)):
            outcome = outcome(message, cancel_token)
            if hasattr(outcome, "__await__"):
                outcome = await outcome
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeTransportFactory:
    """Implements TransportFactory for tests."""

    def __init__(self, default: ScriptedTransport, named: dict[str, ScriptedTransport] | None = None) -> None:
        self.default = default
        self.named = dict(named or {})
        self.requested: list[str | None] = []
        self.closed = False

    def get(self, name: str | None = None) -> ScriptedTransport:
        self.requested.append(name)
        if not name:
            return self.default
        return self.named[name]

    async def close(self) -> None:
        self.closed = True


class CapturingLogger:
    """Implements RequestLogger; records (level, event, fields)."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, event: str, fields: dict[str, Any]) -> None:
        self.records.append((level, event, fields))

    def debug(self, event: str, **fields: Any) -> None:
        self._record("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._record("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._record("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._record("error", event, fields)

    def events(self, level: str | None = None) -> list[str]:
        return [event for lvl, event, _ in self.records if level is None or lvl == level]


class RecordingSleep:
    """Stands in for asyncio.sleep; records delays without waiting."""

    def __init__(self, on_sleep: Callable[[float], None] | None = None) -> None:
        self.delays: list[float] = []
        self._on_sleep = on_sleep

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._on_sleep is not None:
            self._on_sleep(delay)


@pytest.fixture()
def capturing_logger() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
