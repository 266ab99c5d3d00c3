"""Request descriptor: what the caller wants sent, plus fluent body/header builders."""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import IO, Any, Iterable, Mapping
from urllib.parse import urlsplit, urlunsplit

from apiclient.app.constants import CONTENT_TYPE
from apiclient.app.domain.prepared_message import BodySource
from apiclient.app.serialization.form_codec import FORM_MEDIA_TYPE, encode_form, encode_multipart
from apiclient.app.serialization.json_codec import JSON_MEDIA_TYPE, encode_json
from apiclient.app.serialization.xml_codec import XML_MEDIA_TYPE, encode_xml


@dataclass
class RequestBody:
    """Materialized request body: opaque content plus its declared media type."""

    content: BodySource
    content_type: str | None = None
    extra_headers: dict[str, str] = field(default_factory=dict)

    def content_headers(self) -> list[tuple[str, str]]:
        headers: list[tuple[str, str]] = []
        if self.content_type:
            headers.append(("Content-Type", self.content_type))
        headers.extend(self.extra_headers.items())
        return headers

    def close(self) -> None:
        close = getattr(self.content, "close", None)
        if callable(close) and not isinstance(self.content, (bytes, bytearray)):
            close()


class ApiRequest:
    """
    Describes one logical request. The URL is fixed at construction; method, query
    parameters, headers and body may be set before the request is sent.

    Owns its body once attached: close() (or using the request as a context manager)
    releases any stream behind it.
    """

    def __init__(self, url: str, method: str = "GET") -> None:
        parts = urlsplit(str(url))
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"absolute URL required: {url!r}")
        self._url = str(url)
        self.method = method
        self.url_parameters: dict[str, str] = {}
        self.headers: dict[str, str] = {}
        self.content: RequestBody | None = None

    @classmethod
    def from_parts(cls, scheme: str, host: str, path: str | None = None, port: int | None = None) -> "ApiRequest":
        netloc = f"{host}:{port}" if port is not None else host
        path = path or ""
        if path and not path.startswith("/"):
            path = "/" + path
        return cls(urlunsplit((scheme, netloc, path, "", "")))

    @property
    def url(self) -> str:
        return self._url

    @property
    def method(self) -> str:
        return self._method

    @method.setter
    def method(self, value: str) -> None:
        value = str(value or "").strip().upper()
        if not value:
            raise ValueError("method must be a non-empty string")
        self._method = value

    def add_url_params(self, *kv: str) -> "ApiRequest":
        self.url_parameters.update(_pairs(kv, "URL parameters"))
        return self

    def add_headers(self, *kv: str) -> "ApiRequest":
        self.headers.update(_pairs(kv, "Headers"))
        return self

    def build_string_content(self, text: str, media_type: str = CONTENT_TYPE.TEXT_PLAIN) -> "ApiRequest":
        self._attach(RequestBody(text.encode("utf-8"), f"{media_type}; charset=utf-8"))
        return self

    def build_json_content(self, value: Any) -> "ApiRequest":
        self._attach(RequestBody(encode_json(value), JSON_MEDIA_TYPE))
        return self

    def build_xml_content(self, value: Any, root_name: str | None = None) -> "ApiRequest":
        self._attach(RequestBody(encode_xml(value, root_name), XML_MEDIA_TYPE))
        return self

    def build_form_content(self, fields: Mapping[str, str] | Iterable[tuple[str, str]]) -> "ApiRequest":
        self._attach(RequestBody(encode_form(fields), FORM_MEDIA_TYPE))
        return self

    def build_upload_content(self, file: IO[bytes] | bytes, form_name: str, file_name: str) -> "ApiRequest":
        body, content_type = encode_multipart(file, form_name, file_name)
        self._attach(RequestBody(body, content_type))
        return self

    def build_stream_content(self, stream: BodySource, media_type: str = CONTENT_TYPE.OCTET_STREAM) -> "ApiRequest":
        self._attach(RequestBody(stream, media_type))
        return self

    def _attach(self, body: RequestBody) -> None:
        if self.content is not None and self.content is not body:
            self.content.close()
        self.content = body

    @staticmethod
    def combine_url(*segments: str) -> str:
        return "/".join(s.strip("/") for s in segments)

    @staticmethod
    def add_bearer_token(headers: dict[str, str], token: str) -> None:
        headers["Authorization"] = f"Bearer {token}"

    @staticmethod
    def add_basic_authentication(headers: dict[str, str], user: str, password: str) -> None:
        credentials = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {credentials}"

    def close(self) -> None:
        if self.content is not None:
            self.content.close()

    def __enter__(self) -> "ApiRequest":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ApiRequest({self._method} {self._url})"


def _pairs(kv: tuple[str, ...], what: str) -> dict[str, str]:
    if len(kv) % 2 != 0:
        raise ValueError(f"{what} must be in key value pairs")
    return {kv[i]: kv[i + 1] for i in range(0, len(kv), 2)}
