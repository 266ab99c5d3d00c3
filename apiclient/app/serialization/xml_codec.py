"""
XML body encoding and decoding.

Elements map to dicts: attributes and child elements become keys, repeated children
become lists, leaf elements become their stripped text.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, get_origin

from apiclient.app.serialization.json_codec import DEFAULT_JSON_OPTIONS, JsonDecodeOptions
from apiclient.app.serialization.typed import to_jsonable, validate_into

XML_MEDIA_TYPE = "application/xml; charset=utf-8"
_TEXT_KEY = "#text"


def encode_xml(value: Any, root_name: str | None = None) -> bytes:
    plain = to_jsonable(value)
    if root_name is None:
        root_name = "root" if isinstance(value, (dict, list, tuple)) else type(value).__name__
    root = _to_element(root_name, plain)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def decode_xml(data: bytes | str, target: Any, options: JsonDecodeOptions = DEFAULT_JSON_OPTIONS) -> Any:
    root = ET.fromstring(data)
    if get_origin(target) in (list, tuple, set, frozenset):
        value: Any = [_element_value(child) for child in root]
    else:
        value = _element_value(root)
    return validate_into(value, target, case_insensitive=options.case_insensitive, coerce_lists=True)


def _to_element(tag: str, value: Any) -> ET.Element:
    element = ET.Element(tag)
    if isinstance(value, dict):
        for key, item in value.items():
            if isinstance(item, list):
                for entry in item:
                    element.append(_to_element(str(key), entry))
            else:
                element.append(_to_element(str(key), item))
    elif isinstance(value, list):
        for entry in value:
            element.append(_to_element("item", entry))
    elif isinstance(value, bool):
        element.text = "true" if value else "false"
    elif value is not None:
        element.text = str(value)
    return element


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_value(element: ET.Element) -> Any:
    children = list(element)
    text = (element.text or "").strip()
    if not children and not element.attrib:
        return text
    result: dict[str, Any] = {_local_name(k): v for k, v in element.attrib.items()}
    for child in children:
        key = _local_name(child.tag)
        item = _element_value(child)
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(item)
            else:
                result[key] = [existing, item]
        else:
            result[key] = item
    if text and not children:
        result[_TEXT_KEY] = text
    return result
