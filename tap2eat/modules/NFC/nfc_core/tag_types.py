"""Tag data types shared by adapters and the scan controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .ndef import NdefRecord, decode_message


@dataclass(frozen=True, slots=True)
class TagRecord:
    """A tag as seen by the reader: its UID and the NDEF records it carries."""

    uid: Optional[str] = None
    records: Tuple[NdefRecord, ...] = ()

    @classmethod
    def from_message(cls, message: bytes, uid: Optional[str] = None) -> "TagRecord":
        """Build a TagRecord from raw NDEF message bytes."""
        return cls(uid=uid, records=tuple(decode_message(message)))

    @property
    def has_records(self) -> bool:
        return bool(self.records)


def format_uid(raw: bytes) -> str:
    """Convert a raw UID to a colon-separated hex string."""
    return ":".join(f"{byte:02x}" for byte in raw)
