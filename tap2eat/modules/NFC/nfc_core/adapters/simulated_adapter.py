"""In-memory NFC reader for development and testing.

No hardware is touched. Tags are "tapped" by calling ``present_tag()``;
a pending ``request_technology()`` picks up the next presented tag.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Union

from tap2eat.core.logging_utils import get_module_logger

from ..constants import NfcTech
from ..errors import NfcError, NfcNotSupportedError, TechnologyRequestCancelled
from ..ndef import encode_message, text_record
from ..tag_types import TagRecord
from .base_adapter import BaseNfcAdapter

logger = get_module_logger("SimulatedNfcAdapter")

TagLike = Union[TagRecord, bytes, str]


class SimulatedNfcAdapter(BaseNfcAdapter):
    """NFC adapter that serves tags from an in-memory queue."""

    name = "simulated"

    def __init__(
        self,
        *,
        supported: bool = True,
        enabled: bool = True,
        settings_intent: bool = True,
    ) -> None:
        self.supported = supported
        self.enabled = enabled
        self.started = False
        self.settings_opened = 0
        self.written: List[bytes] = []

        # Observability for tests and diagnostics
        self.request_count = 0
        self.cancel_count = 0
        self.in_flight = 0
        self.max_in_flight = 0

        self._settings_intent = settings_intent
        self._tags: asyncio.Queue[TagRecord] = asyncio.Queue()
        self._current: Optional[TagRecord] = None
        self._cancel_event: Optional[asyncio.Event] = None

    @property
    def supports_settings_intent(self) -> bool:
        return self._settings_intent

    @property
    def pending_tags(self) -> int:
        return self._tags.qsize()

    def present_tag(self, tag: TagLike, uid: Optional[str] = None) -> TagRecord:
        """Queue a tag for the next technology request.

        ``tag`` may be a TagRecord, raw NDEF message bytes, or text that is
        wrapped in a single text record.
        """
        if isinstance(tag, TagRecord):
            record = tag
        elif isinstance(tag, bytes):
            record = TagRecord.from_message(tag, uid=uid)
        else:
            record = TagRecord(uid=uid, records=(text_record(tag),))
        self._tags.put_nowait(record)
        logger.debug("Presented simulated tag (uid=%s, queued=%d)", record.uid, self._tags.qsize())
        return record

    async def is_supported(self) -> bool:
        return self.supported

    async def start(self) -> None:
        if not self.supported:
            raise NfcNotSupportedError("Simulated reader is configured as unsupported")
        self.started = True

    async def is_enabled(self) -> bool:
        return self.enabled

    async def request_technology(self, tech: NfcTech) -> None:
        if not self.started:
            raise NfcError("NFC manager not started")

        self.request_count += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        get_task = asyncio.ensure_future(self._tags.get())
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({get_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
            if get_task.done() and not get_task.cancelled():
                self._current = get_task.result()
                logger.debug("Technology %s acquired (uid=%s)", tech.value, self._current.uid)
                return
            raise TechnologyRequestCancelled("Technology request cancelled")
        finally:
            for task in (get_task, cancel_task):
                if not task.done():
                    task.cancel()
            self.in_flight -= 1
            if self._cancel_event is cancel_event:
                self._cancel_event = None

    async def get_tag(self) -> Optional[TagRecord]:
        return self._current

    async def cancel_technology_request(self) -> None:
        self.cancel_count += 1
        if self._cancel_event is not None:
            self._cancel_event.set()
        self._current = None

    async def write_message(self, data: bytes) -> None:
        if self._current is None:
            raise NfcError("No tag in range to write")
        self._current = TagRecord.from_message(data, uid=self._current.uid)
        self.written.append(bytes(data))
        logger.debug("Wrote %d bytes to simulated tag %s", len(data), self._current.uid)

    async def open_platform_settings(self) -> None:
        if not self._settings_intent:
            await super().open_platform_settings()
        self.settings_opened += 1


def text_tag(text: str, uid: Optional[str] = None) -> TagRecord:
    """Convenience: a TagRecord holding one text record."""
    return TagRecord.from_message(encode_message([text_record(text)]), uid=uid)


__all__ = ["SimulatedNfcAdapter", "text_tag"]
