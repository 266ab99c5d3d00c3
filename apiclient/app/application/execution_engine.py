"""Execution engine: drives the transport with retry, backoff and cancellation handling."""
from __future__ import annotations

import asyncio
from typing import Iterable

from apiclient.app.constants import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_INTERVAL_SECONDS,
    DEFAULT_TRANSIENT_STATUS_CODES,
    HTTP_STATUS,
    ErrorKind,
)
from apiclient.app.core.backoff import Sleep, linear_backoff_delay, pause
from apiclient.app.domain.cancellation import CancellationToken
from apiclient.app.domain.prepared_message import PreparedMessage
from apiclient.app.domain.result import OpResult
from apiclient.app.ports.http_transport import (
    AbstractHttpTransport,
    RawResponse,
    TransportCancelledError,
    TransportStatusError,
    TransportTimeoutError,
)
from apiclient.app.ports.request_logger import NullRequestLogger, RequestLogger


class ExecutionEngine:
    """
    Sends a prepared message, retrying timeouts and transient statuses.

    After an aborted attempt the checks run in this order: caller cancellation
    (Cancelled, never retried), timeout, transient status, any other status, anything
    else. Retries wait retry_interval * n before the n-th retry and resend a clone of
    the message; every attempt's message is closed once the attempt is over.

    Bodies are buffered before the first attempt whenever retries remain, so a clone
    always carries the full body.
    """

    def __init__(
        self,
        *,
        retries: int = DEFAULT_RETRIES,
        retry_interval: float = DEFAULT_RETRY_INTERVAL_SECONDS,
        timeout: float | None = None,
        transient_status_codes: Iterable[int] = DEFAULT_TRANSIENT_STATUS_CODES,
        logger: RequestLogger | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.retries = int(retries)
        self.retry_interval = float(retry_interval)
        self.timeout = timeout if timeout is not None and timeout > 0 else None
        self.transient_status_codes = set(transient_status_codes)
        self._logger = logger or NullRequestLogger()
        self._sleep = sleep

    def is_transient(self, status_code: int | None) -> bool:
        return status_code is not None and status_code in self.transient_status_codes

    async def send(
        self,
        message: PreparedMessage,
        transport: AbstractHttpTransport,
        remaining_retries: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> OpResult[RawResponse]:
        remaining = self.retries if remaining_retries is None else int(remaining_retries)

        if remaining > 0:
            try:
                await message.buffer_body()
            except Exception as exc:
                message.close()
                self._logger.error("request_body_buffer_failed", url=message.url, error=str(exc))
                return OpResult.failed(exc, "Failed buffering request body", HTTP_STATUS.INTERNAL_SERVER_ERROR)

        while True:
            next_message: PreparedMessage | None = None
            try:
                if cancel_token is not None and cancel_token.is_cancelled:
                    raise TransportCancelledError("cancelled before the request was sent")
                response = await transport.send(message, timeout=self.timeout, cancel_token=cancel_token)
                self._logger.debug("request_succeeded", url=message.url, status_code=response.status_code)
                return OpResult.success(response, response.status_code)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if cancel_token is not None and cancel_token.is_cancelled:
                    self._logger.warning("request_cancelled", url=message.url, kind=ErrorKind.CANCELLED)
                    return OpResult.cancelled("Request was cancelled")

                if isinstance(exc, TransportTimeoutError):
                    if remaining <= 0:
                        self._logger.error(
                            "request_timeout", url=message.url, kind=ErrorKind.TIMEOUT, retries=self.retries
                        )
                        return OpResult.failed(exc, "Timeout", HTTP_STATUS.REQUEST_TIMEOUT)
                    self._logger.warning(
                        "request_retry", url=message.url, reason="timeout", retries_left=remaining
                    )
                elif isinstance(exc, TransportStatusError):
                    if remaining <= 0 or not self.is_transient(exc.status_code):
                        kind = (
                            ErrorKind.TRANSIENT_SERVER_ERROR
                            if self.is_transient(exc.status_code)
                            else ErrorKind.NON_TRANSIENT_SERVER_ERROR
                        )
                        self._logger.error(
                            "request_status_failed", url=message.url, kind=kind, status_code=exc.status_code
                        )
                        return OpResult.failed(exc, str(exc), exc.status_code)
                    self._logger.warning(
                        "request_retry",
                        url=message.url,
                        reason="transient_status",
                        status_code=exc.status_code,
                        retries_left=remaining,
                    )
                else:
                    self._logger.error(
                        "request_transport_failed",
                        url=message.url,
                        kind=ErrorKind.TRANSPORT_ERROR,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    return OpResult.failed(exc, str(exc), HTTP_STATUS.INTERNAL_SERVER_ERROR)

                next_message = message.clone()
            finally:
                message.close()

            delay = linear_backoff_delay(self.retry_interval, self.retries, remaining)
            if not await pause(delay, cancel_token, sleep=self._sleep):
                next_message.close()
                self._logger.warning("request_cancelled", url=next_message.url, during="backoff")
                return OpResult.cancelled("Request was cancelled")

            message = next_message
            remaining -= 1
