"""Menu payload carried by a tag, and its wire encoding.

The tag holds one NDEF text record whose text is a JSON object such as::

    {"menuItemId": "m1", "name": "Burger", "price": 9.99, "storeId": "s1"}

Only ``menuItemId`` is required. ``name`` and ``price`` are informational;
the menu lookup service stays the source of truth for both.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import NdefDecodeError, PayloadDecodeError
from .ndef import decode_text_payload, encode_message, is_text_record, text_record
from .tag_types import TagRecord


@dataclass(frozen=True, slots=True)
class TagPayload:
    menu_item_id: str
    name: str = ""
    price: float = 0.0
    store_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.menu_item_id, str) or not self.menu_item_id:
            raise ValueError("menu_item_id must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "price": self.price,
        }
        if self.store_id is not None:
            data["storeId"] = self.store_id
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "TagPayload":
        if not isinstance(data, dict):
            raise PayloadDecodeError(f"Tag payload must be a JSON object, got {type(data).__name__}")

        item_id = data.get("menuItemId")
        if not isinstance(item_id, str) or not item_id:
            raise PayloadDecodeError("Tag payload is missing a menuItemId")

        name = data.get("name", "")
        if not isinstance(name, str):
            raise PayloadDecodeError("Tag payload name must be a string")

        price = data.get("price", 0.0)
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise PayloadDecodeError("Tag payload price must be a number")

        store_id = data.get("storeId")
        if store_id is not None and not isinstance(store_id, str):
            raise PayloadDecodeError("Tag payload storeId must be a string")

        return cls(menu_item_id=item_id, name=name, price=float(price), store_id=store_id)

    @classmethod
    def from_json(cls, text: str) -> "TagPayload":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise PayloadDecodeError(f"Tag payload is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


def encode_tag_message(payload: TagPayload) -> bytes:
    """NDEF message bytes to write onto a tag for ``payload``."""
    return encode_message([text_record(payload.to_json())])


def decode_tag_record(tag: TagRecord) -> TagPayload:
    """Read the menu payload out of the first record of ``tag``."""
    if not tag.records:
        raise PayloadDecodeError("Tag carries no NDEF records")
    record = tag.records[0]
    if not is_text_record(record):
        raise PayloadDecodeError("First NDEF record is not a text record")
    try:
        text, _language = decode_text_payload(record.payload)
    except NdefDecodeError as exc:
        raise PayloadDecodeError(str(exc)) from exc
    return TagPayload.from_json(text)


__all__ = ["TagPayload", "encode_tag_message", "decode_tag_record"]
