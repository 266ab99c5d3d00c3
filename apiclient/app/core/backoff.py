"""Backoff utilities.

`linear_backoff_delay` gives the wait before the next retry: one retry interval for the
first retry, two for the second, and so on. `pause` waits that long without blocking
the event loop and wakes early when the caller's cancellation token fires.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from apiclient.app.domain.cancellation import CancellationToken

Sleep = Callable[[float], Awaitable[None]]


def linear_backoff_delay(interval: float, total_retries: int, remaining_retries: int) -> float:
    return max(0.0, interval) * (total_retries - remaining_retries + 1)


async def pause(
    delay: float,
    cancel_token: CancellationToken | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> bool:
    """Wait for delay seconds. Returns False when cancellation cut the wait short."""
    if cancel_token is None:
        await sleep(delay)
        return True
    if cancel_token.is_cancelled:
        return False

    sleeper = asyncio.ensure_future(sleep(delay))
    waiter = asyncio.ensure_future(cancel_token.wait())
    try:
        await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, waiter):
            if not task.done():
                task.cancel()
    return not cancel_token.is_cancelled
