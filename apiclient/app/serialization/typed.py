"""Validate decoded bodies into a caller-chosen type, matching field names case-insensitively."""
from __future__ import annotations

import collections.abc
import dataclasses
import types
import typing
from functools import lru_cache
from typing import Any, Annotated, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, collections.abc.Sequence, collections.abc.MutableSequence)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def to_jsonable(value: Any) -> Any:
    """Plain JSON-compatible data for value; models and dataclasses dump by alias."""
    return _ANY_ADAPTER.dump_python(value, mode="json", by_alias=True)


def is_passthrough_target(target: Any) -> bool:
    return target is None or target is Any or target is object


def validate_into(
    value: Any,
    target: Any,
    *,
    case_insensitive: bool = True,
    coerce_lists: bool = False,
) -> Any:
    """Return value validated as target. Any/object/None return the value unchanged."""
    if is_passthrough_target(target):
        return value
    if case_insensitive:
        value = _match_keys(value, target, coerce_lists=coerce_lists)
    return _adapter(target).validate_python(value)


def _adapter(target: Any) -> TypeAdapter:
    try:
        return _cached_adapter(target)
    except TypeError:
        return TypeAdapter(target)


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _match_keys(value: Any, target: Any, *, coerce_lists: bool) -> Any:
    if is_passthrough_target(target):
        return value
    origin = get_origin(target)
    args = get_args(target)

    if origin is Annotated:
        return _match_keys(value, args[0], coerce_lists=coerce_lists)
    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        candidates = [arg for arg in args if arg is not type(None)]
        if value is None or len(candidates) != 1:
            return value
        return _match_keys(value, candidates[0], coerce_lists=coerce_lists)
    if origin in _SEQUENCE_ORIGINS:
        if coerce_lists and value is not None and not isinstance(value, list):
            value = [value]
        if not isinstance(value, list):
            return value
        item_type = args[0] if args and args[0] is not Ellipsis else Any
        return [_match_keys(item, item_type, coerce_lists=coerce_lists) for item in value]
    if origin in _MAPPING_ORIGINS:
        if not isinstance(value, dict) or len(args) != 2:
            return value
        return {k: _match_keys(v, args[1], coerce_lists=coerce_lists) for k, v in value.items()}

    fields = _field_types(target)
    if fields is None or not isinstance(value, dict):
        return value

    lookup = {key.lower(): entry for key, entry in fields.items()}
    matched: dict[Any, Any] = {}
    # exact keys first so a differently-cased duplicate never overrides them
    for key, item in value.items():
        if key in fields:
            canonical, field_type = fields[key]
            matched[canonical] = _match_keys(item, field_type, coerce_lists=coerce_lists)
    for key, item in value.items():
        if key in fields:
            continue
        entry = lookup.get(str(key).lower())
        if entry is None:
            matched.setdefault(key, item)
            continue
        canonical, field_type = entry
        if canonical not in matched:
            matched[canonical] = _match_keys(item, field_type, coerce_lists=coerce_lists)
    return matched


def _field_types(target: Any) -> dict[str, tuple[str, Any]] | None:
    """Map accepted input key -> (key pydantic expects, field annotation)."""
    if isinstance(target, type) and issubclass(target, BaseModel):
        fields: dict[str, tuple[str, Any]] = {}
        for name, info in target.model_fields.items():
            expected = info.alias or name
            fields[name] = (expected, info.annotation)
            if info.alias:
                fields[info.alias] = (expected, info.annotation)
        return fields
    if isinstance(target, type) and dataclasses.is_dataclass(target):
        try:
            hints = typing.get_type_hints(target)
        except Exception:
            hints = {}
        return {f.name: (f.name, hints.get(f.name, Any)) for f in dataclasses.fields(target)}
    return None
