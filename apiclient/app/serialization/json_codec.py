"""JSON body encoding for request builders and decoding for responses."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from apiclient.app.serialization.typed import to_jsonable, validate_into

JSON_MEDIA_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True)
class JsonDecodeOptions:
    """Decoder options owned by one client instance; built once at construction."""

    case_insensitive: bool = True


DEFAULT_JSON_OPTIONS = JsonDecodeOptions()


def encode_json(value: Any) -> bytes:
    return json.dumps(to_jsonable(value)).encode("utf-8")


def decode_json(data: bytes | str, target: Any, options: JsonDecodeOptions = DEFAULT_JSON_OPTIONS) -> Any:
    parsed = json.loads(data)
    return validate_into(parsed, target, case_insensitive=options.case_insensitive)
