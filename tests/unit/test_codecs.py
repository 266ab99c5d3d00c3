import json
from dataclasses import dataclass
from datetime import date
from xml.etree import ElementTree as ET

from pydantic import BaseModel, Field

from apiclient.app.serialization.json_codec import encode_json
from apiclient.app.serialization.xml_codec import encode_xml


@dataclass
class Tag:
    name: str


class Order(BaseModel):
    order_id: int = Field(alias="orderId")
    placed: date
    tags: list[Tag]
    paid: bool = False


def _order() -> Order:
    return Order(orderId=5, placed=date(2024, 1, 31), tags=[Tag("a"), Tag("b")])


def test_encode_json_dumps_models_by_alias():
    assert json.loads(encode_json(_order())) == {
        "orderId": 5,
        "placed": "2024-01-31",
        "tags": [{"name": "a"}, {"name": "b"}],
        "paid": False,
    }


def test_encode_json_plain_values():
    assert json.loads(encode_json({"a": [1, 2], "b": None})) == {"a": [1, 2], "b": None}


def test_encode_xml_uses_aliases_and_repeats_list_items():
    root = ET.fromstring(encode_xml(_order()))

    assert root.tag == "Order"
    assert root.findtext("orderId") == "5"
    assert root.findtext("placed") == "2024-01-31"
    assert [tag.findtext("name") for tag in root.findall("tags")] == ["a", "b"]
    assert root.findtext("paid") == "false"
