"""Form and multipart request bodies."""
from __future__ import annotations

from typing import IO, Iterable, Mapping
from urllib.parse import urlencode

import httpx

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"


def encode_form(fields: Mapping[str, str] | Iterable[tuple[str, str]]) -> bytes:
    pairs = list(fields.items()) if isinstance(fields, Mapping) else list(fields)
    return urlencode(pairs).encode("ascii")


def encode_multipart(
    file: IO[bytes] | bytes,
    form_name: str,
    file_name: str,
    *,
    content_type: str | None = None,
) -> tuple[bytes, str]:
    """Single-file multipart/form-data body; returns (body, content type with boundary)."""
    part = (file_name, file, content_type) if content_type else (file_name, file)
    request = httpx.Request("POST", "http://multipart.invalid/", files={form_name: part})
    body = request.read()
    return body, request.headers["Content-Type"]
