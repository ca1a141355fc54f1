"""Mock NFC readers, drivers and notifiers.

Provides test doubles for exercising the tag scan controller and the
PN532 adapter without a physical reader.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from tap2eat.modules.Menu.models import MenuItem, MenuItemNotFound
from tap2eat.modules.NFC.nfc_core.adapters.simulated_adapter import SimulatedNfcAdapter
from tap2eat.modules.NFC.nfc_core.constants import NTAG_PAGE_SIZE, NTAG_USER_START_PAGE, NfcTech
from tap2eat.modules.NFC.nfc_core.ndef import wrap_tlv
from tap2eat.modules.NFC.nfc_core.notices import Notice
from tap2eat.modules.NFC.nfc_core.tag_types import TagRecord


class RecordingNotifier:
    """Notifier that keeps every notice it receives."""

    def __init__(self) -> None:
        self.notices: List[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def titles(self) -> List[str]:
        return [notice.title for notice in self.notices]

    def clear(self) -> None:
        self.notices.clear()


class HangingNfcAdapter(SimulatedNfcAdapter):
    """Adapter whose technology request never settles.

    Cancellation is ignored until ``release()`` is called, so a pending
    request outlives any timeout. ``hang_on_cancel`` makes
    ``cancel_technology_request`` block too.
    """

    def __init__(self, *, hang_on_cancel: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.hang_on_cancel = hang_on_cancel
        self.cancels_ignored = 0
        self._released = asyncio.Event()

    def release(self) -> None:
        self._released.set()

    async def request_technology(self, tech: NfcTech) -> None:
        self.request_count += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            while not self._released.is_set():
                try:
                    await self._released.wait()
                except asyncio.CancelledError:
                    self.cancels_ignored += 1
        finally:
            self.in_flight -= 1

    async def cancel_technology_request(self) -> None:
        self.cancel_count += 1
        if self.hang_on_cancel:
            await self._released.wait()


class StallingTagAdapter(SimulatedNfcAdapter):
    """Adapter that claims the radio at once but then stops answering.

    ``get_tag`` (or ``write_message`` with ``stall_writes``) waits on an
    event that nothing sets until ``release()``.
    """

    def __init__(self, *, stall_writes: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.stall_writes = stall_writes
        self.stalled_calls = 0
        self._released = asyncio.Event()

    def release(self) -> None:
        self._released.set()

    async def request_technology(self, tech: NfcTech) -> None:
        self.request_count += 1

    async def get_tag(self) -> Optional[TagRecord]:
        if self.stall_writes:
            return await super().get_tag()
        self.stalled_calls += 1
        await self._released.wait()
        return None

    async def write_message(self, data: bytes) -> None:
        if not self.stall_writes:
            return await super().write_message(data)
        self.stalled_calls += 1
        await self._released.wait()


class FailingNfcAdapter(SimulatedNfcAdapter):
    """Adapter whose technology request always raises ``error``."""

    def __init__(self, error: BaseException, **kwargs) -> None:
        super().__init__(**kwargs)
        self.error = error

    async def request_technology(self, tech: NfcTech) -> None:
        self.request_count += 1
        await asyncio.sleep(0)
        raise self.error


class RaisingProbeAdapter(SimulatedNfcAdapter):
    """Adapter whose capability probe raises, as when the driver is absent."""

    def __init__(self, error: Optional[BaseException] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.error = error or ImportError("No module named 'nfc_manager'")
        self.probe_count = 0

    async def is_supported(self) -> bool:
        self.probe_count += 1
        raise self.error


class FlakyProbeAdapter(SimulatedNfcAdapter):
    """Adapter whose support answer alternates on every call."""

    def __init__(self, answers: Tuple[bool, ...] = (True, False), **kwargs) -> None:
        super().__init__(**kwargs)
        self._answers = answers
        self.probe_count = 0

    async def is_supported(self) -> bool:
        answer = self._answers[self.probe_count % len(self._answers)]
        self.probe_count += 1
        return answer


class SlowMenuLookup:
    """Menu lookup that waits ``delay`` seconds before answering."""

    def __init__(self, items: List[MenuItem], delay: float = 0.0, error: Optional[BaseException] = None) -> None:
        self._items: Dict[str, MenuItem] = {item.id: item for item in items}
        self.delay = delay
        self.error = error
        self.calls: List[str] = []

    async def get_by_id(self, item_id: str) -> MenuItem:
        self.calls.append(item_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        try:
            return self._items[item_id]
        except KeyError:
            raise MenuItemNotFound(item_id) from None


@dataclass
class FakePn532Driver:
    """Stand-in for ``adafruit_pn532.i2c.PN532_I2C`` with NTAG2xx memory."""

    uid: bytes = b"\x04\xa2\x6b\x1a\x7c\x5e\x80"
    pages: int = 135
    tag_present: bool = False
    fail_write_page: Optional[int] = None
    firmware_version: Tuple[int, int, int, int] = (0x32, 1, 6, 7)
    memory: bytearray = field(default_factory=bytearray)
    reads: List[int] = field(default_factory=list)
    writes: List[Tuple[int, bytes]] = field(default_factory=list)
    sam_configured: bool = False
    powered_down: bool = False

    def __post_init__(self) -> None:
        if not self.memory:
            self.memory = bytearray(self.pages * NTAG_PAGE_SIZE)
        self._lock = threading.Lock()

    def load_message(self, message: bytes) -> None:
        """Store an NDEF message in user memory and put the tag in the field."""
        framed = wrap_tlv(message)
        start = NTAG_USER_START_PAGE * NTAG_PAGE_SIZE
        self.memory[start:start + len(framed)] = framed
        self.tag_present = True

    def load_raw(self, data: bytes) -> None:
        start = NTAG_USER_START_PAGE * NTAG_PAGE_SIZE
        self.memory[start:start + len(data)] = data
        self.tag_present = True

    def SAM_configuration(self) -> None:
        self.sam_configured = True

    def read_passive_target(self, timeout: float = 1.0) -> Optional[bytes]:
        if self.tag_present:
            return self.uid
        time.sleep(min(timeout, 0.01))
        return None

    def ntag2xx_read_block(self, block_number: int) -> Optional[bytearray]:
        self.reads.append(block_number)
        offset = block_number * NTAG_PAGE_SIZE
        if offset + NTAG_PAGE_SIZE > len(self.memory):
            return None
        return bytearray(self.memory[offset:offset + NTAG_PAGE_SIZE])

    def ntag2xx_write_block(self, block_number: int, data: bytes) -> bool:
        if block_number == self.fail_write_page:
            return False
        offset = block_number * NTAG_PAGE_SIZE
        with self._lock:
            self.memory[offset:offset + NTAG_PAGE_SIZE] = data
            self.writes.append((block_number, bytes(data)))
        return True

    def power_down(self) -> bool:
        self.powered_down = True
        return True


__all__ = [
    "FailingNfcAdapter",
    "FakePn532Driver",
    "FlakyProbeAdapter",
    "HangingNfcAdapter",
    "RaisingProbeAdapter",
    "RecordingNotifier",
    "SlowMenuLookup",
    "StallingTagAdapter",
]
