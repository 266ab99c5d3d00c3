"""Response decoder: turns a raw 2xx response into the caller's requested type."""
from __future__ import annotations

import io
import typing
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from apiclient.app.constants import CONTENT_TYPE, DEFAULT_CONTENT_TYPE, HTTP_STATUS, ErrorKind
from apiclient.app.domain.result import OpResult
from apiclient.app.ports.http_transport import RawResponse
from apiclient.app.ports.request_logger import NullRequestLogger, RequestLogger
from apiclient.app.serialization.json_codec import DEFAULT_JSON_OPTIONS, JsonDecodeOptions, decode_json
from apiclient.app.serialization.typed import is_passthrough_target
from apiclient.app.serialization.xml_codec import decode_xml

ContentDecoder = Callable[[RawResponse, Any], Awaitable[Any]]
ContentPredicate = Callable[[str], bool]

_STREAM_TARGETS = (io.BytesIO, typing.BinaryIO, typing.IO[bytes])


class ContentTypeContains:
    """Case-insensitive substring match: 'application/json' matches 'application/json; charset=utf-8'."""

    def __init__(self, key: str) -> None:
        self.key = key.strip().lower()

    def __call__(self, content_type: str) -> bool:
        return self.key in content_type.lower()

    def __repr__(self) -> str:
        return f"ContentTypeContains({self.key!r})"


@dataclass(frozen=True)
class DecoderRegistration:
    predicate: ContentPredicate
    decoder: ContentDecoder
    content_type: str | None = None


class ResponseDecoder:
    """
    Selects a decoding strategy for a response.

    str, bytes and binary stream targets are read directly whatever the content type.
    Anything else goes through the registrations in order; the first predicate that
    accepts the response's content type (application/json when the header is missing)
    wins.
    """

    def __init__(
        self,
        *,
        json_options: JsonDecodeOptions = DEFAULT_JSON_OPTIONS,
        logger: RequestLogger | None = None,
        register_defaults: bool = True,
    ) -> None:
        self._json_options = json_options
        self._logger = logger or NullRequestLogger()
        self._registrations: list[DecoderRegistration] = []
        if register_defaults:
            for content_type in (CONTENT_TYPE.JSON, CONTENT_TYPE.TEXT_JSON, CONTENT_TYPE.TEXT_X_JSON):
                self.register(content_type, self._decode_json)
            # form-urlencoded responses go through the XML decoder for historical compatibility
            for content_type in (
                CONTENT_TYPE.XML,
                CONTENT_TYPE.TEXT_XML,
                CONTENT_TYPE.TEXT_X_XML,
                CONTENT_TYPE.FORM,
            ):
                self.register(content_type, self._decode_xml)
            self.register(CONTENT_TYPE.OCTET_STREAM, self._decode_bytes)

    @property
    def json_options(self) -> JsonDecodeOptions:
        return self._json_options

    @property
    def content_types(self) -> list[str]:
        return [r.content_type for r in self._registrations if r.content_type is not None]

    def register(self, content_type: str, decoder: ContentDecoder) -> None:
        """Add a decoder for a content type; re-registering a content type replaces it in place."""
        registration = DecoderRegistration(ContentTypeContains(content_type), decoder, content_type)
        for index, existing in enumerate(self._registrations):
            if existing.content_type is not None and existing.content_type.lower() == content_type.lower():
                self._registrations[index] = registration
                return
        self._registrations.append(registration)

    def register_predicate(self, predicate: ContentPredicate, decoder: ContentDecoder) -> None:
        self._registrations.append(DecoderRegistration(predicate, decoder))

    def unregister(self, content_type: str) -> None:
        self._registrations = [
            r for r in self._registrations
            if r.content_type is None or r.content_type.lower() != content_type.lower()
        ]

    def clear(self) -> None:
        self._registrations.clear()

    def decoder_for(self, content_type: str) -> ContentDecoder | None:
        for registration in self._registrations:
            if registration.predicate(content_type):
                return registration.decoder
        return None

    async def decode(self, response: RawResponse, target: Any = str) -> OpResult[Any]:
        target_name = getattr(target, "__name__", repr(target))
        try:
            if target is str:
                payload: Any = await response.text()
            elif target is bytes:
                payload = await response.read()
            elif target in _STREAM_TARGETS:
                # buffered so the payload survives closing the response
                payload = io.BytesIO(await response.read())
            else:
                content_type = response.content_type
                if not content_type:
                    self._logger.debug("response_content_type_missing", assumed=DEFAULT_CONTENT_TYPE)
                    content_type = DEFAULT_CONTENT_TYPE

                self._logger.debug("response_content_type", content_type=content_type)
                decoder = self.decoder_for(content_type)
                if decoder is None:
                    self._logger.error(
                        "response_decoder_missing", kind=ErrorKind.UNHANDLED_CONTENT_TYPE, content_type=content_type
                    )
                    return OpResult.failed(
                        message=f"Error processing response, {content_type} not handled",
                        status_code=HTTP_STATUS.INTERNAL_SERVER_ERROR,
                    )
                payload = await decoder(response, target)
        except Exception as exc:
            self._logger.error(
                "response_decode_failed", kind=ErrorKind.DECODE_ERROR, target=target_name, error=str(exc)
            )
            return OpResult.failed(exc, "Failed processing response", HTTP_STATUS.INTERNAL_SERVER_ERROR)

        self._logger.debug("response_decoded", target=target_name)
        return OpResult.success(payload, response.status_code)

    async def _decode_json(self, response: RawResponse, target: Any) -> Any:
        return decode_json(await response.read(), target, self._json_options)

    async def _decode_xml(self, response: RawResponse, target: Any) -> Any:
        return decode_xml(await response.read(), target, self._json_options)

    async def _decode_bytes(self, response: RawResponse, target: Any) -> Any:
        data = await response.read()
        if is_passthrough_target(target) or target in (bytes, bytearray):
            return bytearray(data) if target is bytearray else data
        raise TypeError(f"octet-stream response cannot be decoded as {target!r}")
