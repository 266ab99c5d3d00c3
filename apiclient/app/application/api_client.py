"""
ApiClient: public entry points composing preparer, execution engine and decoder.

Every operation returns an OpResult; failures from any stage are returned as they
were produced, with their status code, message and error intact.
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping

from apiclient.app.application.execution_engine import ExecutionEngine
from apiclient.app.application.response_decoder import ResponseDecoder
from apiclient.app.constants import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_INTERVAL_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TRANSIENT_STATUS_CODES,
    HTTP_STATUS,
)
from apiclient.app.core.backoff import Sleep
from apiclient.app.domain.cancellation import CancellationToken
from apiclient.app.domain.filenames import choose_filename, move_to_unique_destination
from apiclient.app.domain.prepared_message import PreparedMessage
from apiclient.app.domain.preparer import RequestPreparer
from apiclient.app.domain.request import ApiRequest
from apiclient.app.domain.result import OpResult
from apiclient.app.ports.http_transport import RawResponse, TransportFactory
from apiclient.app.ports.request_logger import NullRequestLogger, RequestLogger
from apiclient.app.serialization.json_codec import DEFAULT_JSON_OPTIONS, JsonDecodeOptions


class ApiClient:
    """
    Resilient HTTP client over a TransportFactory.

    Configuration attributes may be changed between requests; common_headers,
    transient_status_codes and response_decoders are shared by in-flight requests and
    are not locked, so avoid mutating them while requests run.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        *,
        logger: RequestLogger | None = None,
        retries: int = DEFAULT_RETRIES,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        retry_interval: float = DEFAULT_RETRY_INTERVAL_SECONDS,
        http_client_name: str | None = None,
        transient_status_codes: Iterable[int] = DEFAULT_TRANSIENT_STATUS_CODES,
        common_headers: Mapping[str, str] | None = None,
        json_options: JsonDecodeOptions = DEFAULT_JSON_OPTIONS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._transport_factory = transport_factory
        self._logger = logger or NullRequestLogger()
        self._sleep = sleep
        self._preparer = RequestPreparer(self._logger)

        self.retries = retries
        # Per physical attempt; None, zero or negative disables it.
        self.timeout = timeout
        self.retry_interval = retry_interval
        self.http_client_name = http_client_name
        self.transient_status_codes: list[int] = list(transient_status_codes)
        self.common_headers: dict[str, str] = dict(common_headers or {})
        self.response_decoders = ResponseDecoder(json_options=json_options, logger=self._logger)

    async def send(
        self,
        request: ApiRequest,
        target: Any = str,
        cancel_token: CancellationToken | None = None,
    ) -> OpResult[Any]:
        """Send the request and decode the response body as target (str by default)."""
        self._logger.info("request_started", url=request.url, method=request.method)

        response = await self._execute(request, cancel_token)
        if not response.is_success:
            self._logger.error(
                "request_failed",
                url=request.url,
                status=response.status.value,
                status_code=response.status_code,
                message=response.message,
            )
            return response.propagate()

        raw = response.payload
        self._logger.debug("request_completed", url=request.url, status_code=raw.status_code)
        try:
            return await self.response_decoders.decode(raw, target)
        finally:
            await self._close_response(raw)

    async def send_no_content(
        self,
        request: ApiRequest,
        cancel_token: CancellationToken | None = None,
    ) -> OpResult[None]:
        result = await self.send(request, str, cancel_token)
        return result.then(lambda _: OpResult.success(None, result.status_code))

    async def get(
        self,
        url: str,
        target: Any = str,
        cancel_token: CancellationToken | None = None,
    ) -> OpResult[Any]:
        try:
            request = ApiRequest(url, method="GET")
        except ValueError as exc:
            self._logger.error("request_prepare_failed", url=url, error=str(exc))
            return OpResult.failed(exc, "Invalid request", HTTP_STATUS.BAD_REQUEST)
        return await self.send(request, target, cancel_token)

    async def download(
        self,
        request: ApiRequest,
        directory: str | os.PathLike[str] | None,
        cancel_token: CancellationToken | None = None,
    ) -> OpResult[Path]:
        """
        Stream the response body into directory and return the final path.

        The name comes from Content-Disposition, else the URL path, else a random name;
        an existing name gets a (1), (2), ... counter before its extension.
        """
        self._logger.info("download_started", url=request.url, directory=str(directory or ""))

        if directory is None or not str(directory).strip():
            self._logger.error("download_failed", url=request.url, reason="Download directory is null or empty")
            return OpResult.failed(message="Download directory must be specified")

        target_dir = Path(directory)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._logger.error("download_failed", url=request.url, reason="directory_inaccessible", error=str(exc))
            return OpResult.failed(exc, f"Cannot access download directory {directory}")

        response = await self._execute(request, cancel_token)
        if not response.is_success:
            self._logger.error(
                "download_failed",
                url=request.url,
                status=response.status.value,
                status_code=response.status_code,
                message=response.message,
            )
            return response.propagate()

        raw = response.payload
        filename = choose_filename(raw.headers, request.url)
        self._logger.debug("download_filename", filename=filename)

        tmp_path: Path | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=target_dir, prefix=".", suffix=".part")
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as handle:
                async for chunk in raw.iter_bytes():
                    if cancel_token is not None and cancel_token.is_cancelled:
                        self._logger.warning("download_cancelled", url=request.url)
                        return OpResult.cancelled("Download was cancelled")
                    handle.write(chunk)

            destination = move_to_unique_destination(tmp_path, target_dir, filename)
            tmp_path = None
        except Exception as exc:
            self._logger.error("download_failed", url=request.url, directory=str(target_dir), error=str(exc))
            return OpResult.failed(exc, "Download failed", HTTP_STATUS.INTERNAL_SERVER_ERROR)
        finally:
            await self._close_response(raw)
            if tmp_path is not None:
                try:
                    tmp_path.unlink(missing_ok=True)
                except OSError as exc:
                    self._logger.warning("download_cleanup_failed", path=str(tmp_path), error=str(exc))

        self._logger.info("download_completed", url=request.url, path=str(destination))
        return OpResult.success(destination, raw.status_code)

    async def aclose(self) -> None:
        await self._transport_factory.close()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    def _engine(self) -> ExecutionEngine:
        return ExecutionEngine(
            retries=self.retries,
            retry_interval=self.retry_interval,
            timeout=self.timeout,
            transient_status_codes=self.transient_status_codes,
            logger=self._logger,
            sleep=self._sleep,
        )

    async def _execute(
        self,
        request: ApiRequest,
        cancel_token: CancellationToken | None,
    ) -> OpResult[RawResponse]:
        prepared = self._preparer.prepare(request, self.common_headers)
        if not prepared.is_success:
            return OpResult.failed(prepared.error, "Invalid request", HTTP_STATUS.BAD_REQUEST)
        return await prepared.then_async(lambda message: self._dispatch(message, cancel_token))

    async def _dispatch(
        self,
        message: PreparedMessage,
        cancel_token: CancellationToken | None,
    ) -> OpResult[RawResponse]:
        name = self.http_client_name or None
        try:
            transport = self._transport_factory.get(name)
        except KeyError as exc:
            message.close()
            self._logger.error("transport_unknown", http_client_name=name)
            return OpResult.failed(exc, f"Unknown HTTP client {name!r}", HTTP_STATUS.INTERNAL_SERVER_ERROR)
        engine = self._engine()
        return await engine.send(message, transport, engine.retries, cancel_token)

    async def _close_response(self, raw: RawResponse) -> None:
        try:
            await raw.close()
        except Exception as exc:
            self._logger.warning("response_close_failed", error=str(exc))
