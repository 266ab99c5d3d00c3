"""Caller-owned cancellation signal, checked at the transport boundary and during backoff."""
from __future__ import annotations

import asyncio


class CancellationToken:
    """
    Cooperative cancellation flag backed by asyncio.Event.

    Distinct from task cancellation: triggering the token makes the client return a
    Cancelled result instead of raising asyncio.CancelledError in the caller.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, seconds: float) -> None:
        """Schedule cancel() on the running loop."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(max(0.0, seconds), self.cancel)

    async def wait(self) -> None:
        await self._event.wait()
