"""NDEF message encoding/decoding and Type 2 tag TLV framing.

Only what the menu tags need is covered: short and long records, record
ids, well-known text records, and the NDEF message TLV that NTAG2xx tags
store in user memory. Chunked records are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .constants import (
    DEFAULT_TEXT_LANGUAGE,
    NDEF_FLAG_CF,
    NDEF_FLAG_IL,
    NDEF_FLAG_MB,
    NDEF_FLAG_ME,
    NDEF_FLAG_SR,
    NDEF_TNF_MASK,
    RTD_TEXT,
    TEXT_LANG_LENGTH_MASK,
    TEXT_UTF16_FLAG,
    TLV_LONG_LENGTH,
    TLV_NDEF_MESSAGE,
    TLV_NULL,
    TLV_TERMINATOR,
    TNF_WELL_KNOWN,
)
from .errors import NdefDecodeError


class TruncatedDataError(NdefDecodeError):
    """The buffer ended before the structure being decoded was complete."""


@dataclass(frozen=True, slots=True)
class NdefRecord:
    """A single NDEF record."""

    tnf: int
    type: bytes
    payload: bytes
    id: bytes = b""


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def encode_message(records: Iterable[NdefRecord]) -> bytes:
    """Serialize records into an NDEF message."""
    items = list(records)
    if not items:
        raise ValueError("An NDEF message needs at least one record")

    out = bytearray()
    last = len(items) - 1
    for index, record in enumerate(items):
        if len(record.type) > 0xFF or len(record.id) > 0xFF:
            raise ValueError("NDEF record type and id are limited to 255 bytes")

        header = record.tnf & NDEF_TNF_MASK
        if index == 0:
            header |= NDEF_FLAG_MB
        if index == last:
            header |= NDEF_FLAG_ME
        short = len(record.payload) < 0x100
        if short:
            header |= NDEF_FLAG_SR
        if record.id:
            header |= NDEF_FLAG_IL

        out.append(header)
        out.append(len(record.type))
        if short:
            out.append(len(record.payload))
        else:
            out += len(record.payload).to_bytes(4, "big")
        if record.id:
            out.append(len(record.id))
        out += record.type
        out += record.id
        out += record.payload
    return bytes(out)


def decode_message(data: bytes) -> List[NdefRecord]:
    """Parse an NDEF message into its records."""
    if not data:
        raise NdefDecodeError("Empty NDEF message")

    records: List[NdefRecord] = []
    offset = 0
    length = len(data)

    def _require(count: int) -> None:
        if offset + count > length:
            raise TruncatedDataError(
                f"NDEF record truncated at byte {offset} (needs {count} more, has {length - offset})"
            )

    ended = False
    while offset < length:
        header = data[offset]
        offset += 1
        if header & NDEF_FLAG_CF:
            raise NdefDecodeError("Chunked NDEF records are not supported")
        if not records and not header & NDEF_FLAG_MB:
            raise NdefDecodeError("First NDEF record is missing the message-begin flag")

        _require(1)
        type_length = data[offset]
        offset += 1

        if header & NDEF_FLAG_SR:
            _require(1)
            payload_length = data[offset]
            offset += 1
        else:
            _require(4)
            payload_length = int.from_bytes(data[offset:offset + 4], "big")
            offset += 4

        id_length = 0
        if header & NDEF_FLAG_IL:
            _require(1)
            id_length = data[offset]
            offset += 1

        _require(type_length + id_length + payload_length)
        record_type = bytes(data[offset:offset + type_length])
        offset += type_length
        record_id = bytes(data[offset:offset + id_length])
        offset += id_length
        payload = bytes(data[offset:offset + payload_length])
        offset += payload_length

        records.append(NdefRecord(header & NDEF_TNF_MASK, record_type, payload, record_id))
        if header & NDEF_FLAG_ME:
            ended = True
            break

    if not ended:
        raise TruncatedDataError("NDEF message ended without a message-end record")
    return records


# ---------------------------------------------------------------------------
# Text records (NFC Forum RTD "T")
# ---------------------------------------------------------------------------


def encode_text_payload(text: str, language: str = DEFAULT_TEXT_LANGUAGE) -> bytes:
    lang = language.encode("ascii")
    if len(lang) > TEXT_LANG_LENGTH_MASK:
        raise ValueError(f"Language code too long: {language!r}")
    return bytes([len(lang)]) + lang + text.encode("utf-8")


def decode_text_payload(payload: bytes) -> Tuple[str, str]:
    """Return ``(text, language)`` from a text record payload."""
    if not payload:
        raise NdefDecodeError("Empty text record payload")
    status = payload[0]
    lang_length = status & TEXT_LANG_LENGTH_MASK
    if len(payload) < 1 + lang_length:
        raise TruncatedDataError("Text record shorter than its language code")
    encoding = "utf-16" if status & TEXT_UTF16_FLAG else "utf-8"
    try:
        language = payload[1:1 + lang_length].decode("ascii")
        text = payload[1 + lang_length:].decode(encoding)
    except UnicodeDecodeError as exc:
        raise NdefDecodeError(f"Text record is not valid {encoding}: {exc}") from exc
    return text, language


def text_record(text: str, language: str = DEFAULT_TEXT_LANGUAGE) -> NdefRecord:
    return NdefRecord(TNF_WELL_KNOWN, RTD_TEXT, encode_text_payload(text, language))


def is_text_record(record: NdefRecord) -> bool:
    return record.tnf == TNF_WELL_KNOWN and record.type == RTD_TEXT


# ---------------------------------------------------------------------------
# Type 2 tag TLV framing
# ---------------------------------------------------------------------------


def wrap_tlv(message: bytes) -> bytes:
    """Frame an NDEF message as it is stored in tag memory."""
    size = len(message)
    if size < TLV_LONG_LENGTH:
        header = bytes([TLV_NDEF_MESSAGE, size])
    elif size <= 0xFFFE:
        header = bytes([TLV_NDEF_MESSAGE, TLV_LONG_LENGTH]) + size.to_bytes(2, "big")
    else:
        raise ValueError(f"NDEF message too large for a TLV block: {size} bytes")
    return header + message + bytes([TLV_TERMINATOR])


def unwrap_tlv(data: bytes) -> bytes:
    """Extract the first NDEF message from tag memory contents.

    Raises TruncatedDataError when ``data`` ends inside a TLV, so callers
    reading page by page know to fetch more.
    """
    offset = 0
    length = len(data)
    terminated = False
    while offset < length:
        tag = data[offset]
        offset += 1
        if tag == TLV_NULL:
            continue
        if tag == TLV_TERMINATOR:
            terminated = True
            break

        if offset >= length:
            raise TruncatedDataError("TLV length missing")
        size = data[offset]
        offset += 1
        if size == TLV_LONG_LENGTH:
            if offset + 2 > length:
                raise TruncatedDataError("TLV long length truncated")
            size = int.from_bytes(data[offset:offset + 2], "big")
            offset += 2

        if offset + size > length:
            raise TruncatedDataError(f"TLV value truncated ({length - offset}/{size} bytes)")
        if tag == TLV_NDEF_MESSAGE:
            return bytes(data[offset:offset + size])
        offset += size

    if not terminated:
        raise TruncatedDataError("Tag memory ended before an NDEF TLV")
    raise NdefDecodeError("Tag memory holds no NDEF message")


__all__ = [
    "NdefRecord",
    "TruncatedDataError",
    "encode_message",
    "decode_message",
    "encode_text_payload",
    "decode_text_payload",
    "text_record",
    "is_text_record",
    "wrap_tlv",
    "unwrap_tlv",
]
