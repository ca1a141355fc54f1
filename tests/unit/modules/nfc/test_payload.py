"""Unit tests for the menu payload carried on tags."""

import json

import pytest

from tap2eat.modules.NFC.nfc_core.constants import TNF_MEDIA
from tap2eat.modules.NFC.nfc_core.errors import PayloadDecodeError
from tap2eat.modules.NFC.nfc_core.ndef import NdefRecord, decode_message, decode_text_payload, text_record
from tap2eat.modules.NFC.nfc_core.payload import TagPayload, decode_tag_record, encode_tag_message
from tap2eat.modules.NFC.nfc_core.tag_types import TagRecord, format_uid


class TestTagPayload:
    """JSON shape of the payload."""

    def test_round_trip(self):
        payload = TagPayload("m1", "Burger", 9.99, "s1")
        assert TagPayload.from_json(payload.to_json()) == payload

    def test_round_trip_without_store(self):
        payload = TagPayload("m1", "Burger", 9.99)
        text = payload.to_json()
        assert "storeId" not in json.loads(text)
        assert TagPayload.from_json(text) == payload

    def test_wire_keys(self):
        data = json.loads(TagPayload("m1", "Burger", 9.99, "s1").to_json())
        assert data == {"menuItemId": "m1", "name": "Burger", "price": 9.99, "storeId": "s1"}

    def test_only_menu_item_id_required(self):
        payload = TagPayload.from_json('{"menuItemId": "m7"}')
        assert payload == TagPayload("m7")

    def test_integer_price_becomes_float(self):
        payload = TagPayload.from_json('{"menuItemId": "m1", "price": 5}')
        assert payload.price == 5.0
        assert isinstance(payload.price, float)

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2]",
            '"m1"',
            "{}",
            '{"menuItemId": ""}',
            '{"menuItemId": 42}',
            '{"menuItemId": "m1", "name": 3}',
            '{"menuItemId": "m1", "price": "9.99"}',
            '{"menuItemId": "m1", "price": true}',
            '{"menuItemId": "m1", "storeId": 5}',
        ],
    )
    def test_invalid_shapes(self, text):
        with pytest.raises(PayloadDecodeError):
            TagPayload.from_json(text)

    def test_empty_id_rejected_on_construction(self):
        with pytest.raises(ValueError):
            TagPayload("")


class TestTagMessages:
    """Payload to tag message and back."""

    def test_encode_is_single_text_record(self):
        message = encode_tag_message(TagPayload("m1", "Burger", 9.99))
        records = decode_message(message)
        assert len(records) == 1
        text, language = decode_text_payload(records[0].payload)
        assert language == "en"
        assert json.loads(text)["menuItemId"] == "m1"

    def test_decode_tag_record(self):
        payload = TagPayload("m1", "Burger", 9.99)
        tag = TagRecord.from_message(encode_tag_message(payload), uid="04:aa")
        assert decode_tag_record(tag) == payload

    def test_decode_tag_without_records(self):
        with pytest.raises(PayloadDecodeError):
            decode_tag_record(TagRecord(uid="04:aa"))

    def test_decode_non_text_record(self):
        tag = TagRecord(records=(NdefRecord(TNF_MEDIA, b"application/json", b'{"menuItemId":"m1"}'),))
        with pytest.raises(PayloadDecodeError):
            decode_tag_record(tag)

    def test_decode_non_json_text(self):
        tag = TagRecord(records=(text_record("hello there"),))
        with pytest.raises(PayloadDecodeError):
            decode_tag_record(tag)

    def test_format_uid(self):
        assert format_uid(b"\x04\xa2\x6b") == "04:a2:6b"
