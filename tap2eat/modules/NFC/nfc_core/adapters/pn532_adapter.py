"""PN532 reader over I2C using the Adafruit CircuitPython driver.

Driver calls block, so every one runs in a worker thread. NTAG2xx tags
are read page by page from the first user page until a complete NDEF TLV
has been collected.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Optional

from tap2eat.core.logging_utils import get_module_logger

from ..constants import NTAG_DEFAULT_MAX_PAGES, NTAG_PAGE_SIZE, NTAG_USER_START_PAGE, NfcTech
from ..errors import (
    NdefDecodeError,
    NfcError,
    NfcModuleMissingError,
    NfcNotSupportedError,
    TechnologyRequestCancelled,
)
from ..ndef import TruncatedDataError, unwrap_tlv, wrap_tlv
from ..tag_types import TagRecord, format_uid
from .base_adapter import BaseNfcAdapter

logger = get_module_logger("Pn532NfcAdapter")

DriverFactory = Callable[[], Any]

DEFAULT_POLL_TIMEOUT = 0.5


def default_driver_factory() -> Any:
    """Open a PN532 on the board's default I2C bus."""
    try:
        import board  # type: ignore[import-untyped]
        import busio  # type: ignore[import-untyped]
        from adafruit_pn532.i2c import PN532_I2C  # type: ignore[import-untyped]
    except (ImportError, NotImplementedError) as exc:
        raise NfcModuleMissingError(f"PN532 native module not available: {exc}") from exc

    i2c = busio.I2C(board.SCL, board.SDA)
    return PN532_I2C(i2c, debug=False)


class Pn532NfcAdapter(BaseNfcAdapter):
    """NFC adapter for a PN532 breakout reading NTAG2xx tags."""

    name = "pn532"

    def __init__(
        self,
        *,
        driver_factory: Optional[DriverFactory] = None,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        max_pages: int = NTAG_DEFAULT_MAX_PAGES,
    ) -> None:
        if max_pages <= NTAG_USER_START_PAGE:
            raise ValueError(f"max_pages must exceed {NTAG_USER_START_PAGE}")
        self._driver_factory = driver_factory or default_driver_factory
        self._poll_timeout = poll_timeout
        self._max_pages = max_pages
        self._driver: Optional[Any] = None
        self._io_lock = threading.Lock()
        self._cancel: Optional[threading.Event] = None
        self._current: Optional[TagRecord] = None

    async def is_supported(self) -> bool:
        try:
            await self._ensure_driver()
        except NfcModuleMissingError:
            raise
        except (OSError, RuntimeError, ValueError) as exc:
            logger.warning("PN532 probe failed: %s", exc)
            return False
        return True

    async def start(self) -> None:
        try:
            await self._ensure_driver()
        except NfcModuleMissingError:
            raise
        except (OSError, RuntimeError, ValueError) as exc:
            raise NfcNotSupportedError(f"PN532 not reachable: {exc}") from exc

    async def is_enabled(self) -> bool:
        # A PN532 has no user-facing on/off switch; present means enabled.
        return self._driver is not None

    async def request_technology(self, tech: NfcTech) -> None:
        if self._driver is None:
            raise NfcError("NFC manager not started")

        cancel = threading.Event()
        self._cancel = cancel
        try:
            tag = await asyncio.to_thread(self._wait_for_tag, cancel)
        except asyncio.CancelledError:
            cancel.set()
            raise
        finally:
            if self._cancel is cancel:
                self._cancel = None

        if tag is None:
            raise TechnologyRequestCancelled("Technology request cancelled")
        self._current = tag
        logger.debug("Technology %s acquired (uid=%s, records=%d)", tech.value, tag.uid, len(tag.records))

    async def get_tag(self) -> Optional[TagRecord]:
        return self._current

    async def cancel_technology_request(self) -> None:
        if self._cancel is not None:
            self._cancel.set()
        self._current = None

    async def write_message(self, data: bytes) -> None:
        if self._driver is None:
            raise NfcError("NFC manager not started")
        if self._current is None:
            raise NfcError("No tag in range to write")

        framed = wrap_tlv(data)
        remainder = len(framed) % NTAG_PAGE_SIZE
        if remainder:
            framed += bytes(NTAG_PAGE_SIZE - remainder)
        pages = len(framed) // NTAG_PAGE_SIZE
        if NTAG_USER_START_PAGE + pages > self._max_pages:
            raise NfcError(f"NDEF message needs {pages} pages, tag holds {self._max_pages - NTAG_USER_START_PAGE}")

        await asyncio.to_thread(self._write_pages, framed)
        self._current = TagRecord.from_message(data, uid=self._current.uid)
        logger.info("Wrote %d bytes (%d pages) to tag %s", len(data), pages, self._current.uid)

    async def close(self) -> None:
        if self._cancel is not None:
            self._cancel.set()
        driver, self._driver = self._driver, None
        self._current = None
        if driver is None:
            return
        power_down = getattr(driver, "power_down", None)
        if callable(power_down):
            try:
                await asyncio.to_thread(self._locked_call, power_down)
            except (OSError, RuntimeError) as exc:
                logger.debug("PN532 power down failed: %s", exc)

    # ------------------------------------------------------------------
    # Blocking helpers (worker thread)

    async def _ensure_driver(self) -> Any:
        if self._driver is None:
            self._driver = await asyncio.to_thread(self._open_driver)
        return self._driver

    def _open_driver(self) -> Any:
        driver = self._driver_factory()
        _ic, version, revision, _support = driver.firmware_version
        logger.info("Found PN532 with firmware version: %d.%d", version, revision)
        driver.SAM_configuration()
        return driver

    def _locked_call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        with self._io_lock:
            return func(*args, **kwargs)

    def _wait_for_tag(self, cancel: threading.Event) -> Optional[TagRecord]:
        driver = self._driver
        while not cancel.is_set():
            if driver is None:
                raise NfcError("PN532 closed during technology request")
            raw_uid = self._locked_call(driver.read_passive_target, timeout=self._poll_timeout)
            if raw_uid is None:
                continue
            if cancel.is_set():
                return None

            uid = format_uid(bytes(raw_uid))
            try:
                message = self._read_message(driver)
            except TruncatedDataError:
                logger.warning("Tag %s: NDEF data runs past page %d", uid, self._max_pages)
                return TagRecord(uid=uid)
            except NdefDecodeError as exc:
                logger.debug("Tag %s carries no NDEF message: %s", uid, exc)
                return TagRecord(uid=uid)

            try:
                return TagRecord.from_message(message, uid=uid)
            except NdefDecodeError as exc:
                logger.warning("Tag %s has a malformed NDEF message: %s", uid, exc)
                return TagRecord(uid=uid)
        return None

    def _read_message(self, driver: Any) -> bytes:
        data = bytearray()
        for page in range(NTAG_USER_START_PAGE, self._max_pages):
            block = self._locked_call(driver.ntag2xx_read_block, page)
            if block is None:
                raise NfcError(f"Failed to read page {page}")
            data += bytes(block[:NTAG_PAGE_SIZE])
            try:
                return unwrap_tlv(bytes(data))
            except TruncatedDataError:
                continue
        raise TruncatedDataError(f"No complete NDEF TLV within {self._max_pages} pages")

    def _write_pages(self, framed: bytes) -> None:
        driver = self._driver
        if driver is None:
            raise NfcError("PN532 closed during write")
        for index in range(0, len(framed), NTAG_PAGE_SIZE):
            page = NTAG_USER_START_PAGE + index // NTAG_PAGE_SIZE
            chunk = framed[index:index + NTAG_PAGE_SIZE]
            if not self._locked_call(driver.ntag2xx_write_block, page, chunk):
                raise NfcError(f"Failed to write page {page}")


__all__ = ["Pn532NfcAdapter", "default_driver_factory", "DEFAULT_POLL_TIMEOUT"]
