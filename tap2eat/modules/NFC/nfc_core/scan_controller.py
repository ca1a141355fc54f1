"""Tag scan controller: NFC lifecycle, one-shot reads and continuous polling.

All work happens on one asyncio event loop. A single technology request is
outstanding per controller at any time; every request races a timeout and
is always paired with a release, including on the timeout and stop paths.

Public operations do not raise. Failures come back as ``None``/``False``,
are logged, and reach the user through notices (outside continuous scans)
or the ``on_error`` callback (inside them).
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tap2eat.core.asyncio_utils import cancel_task_safely, create_logged_task, discard_task_result
from tap2eat.core.logging_utils import get_module_logger
from tap2eat.modules.Menu.models import MenuItem, MenuItemNotFound, MenuLookupService

from . import notices
from .adapters.base_adapter import BaseNfcAdapter
from .constants import (
    DEFAULT_CANCEL_GRACE,
    DEFAULT_MANUAL_READ_TIMEOUT,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_READ_TIMEOUT,
    DEFAULT_PROCESSING_COOLDOWN,
    DEFAULT_SUCCESS_COOLDOWN,
    DEFAULT_WRITE_TIMEOUT,
    NfcTech,
)
from .errors import (
    PayloadDecodeError,
    TechnologyRequestCancelled,
    TechnologyRequestTimeout,
    is_cancellation,
    is_module_missing,
)
from .notices import LoggingNotifier, Notice, Notifier
from .payload import TagPayload, decode_tag_record, encode_tag_message
from .scanner_state import ModuleAvailability, ScannerState

logger = get_module_logger("TagScanController")

T = TypeVar("T")

DetectedCallback = Callable[[MenuItem, TagPayload], Any]
ErrorCallback = Callable[["ScanFailure"], Any]


class ScanCondition(str, Enum):
    NOT_ENABLED = "not_enabled"
    INITIALIZATION_FAILED = "initialization_failed"
    READ_FAILED = "read_failed"
    HARDWARE_FAULT = "hardware_fault"


@dataclass(frozen=True, slots=True)
class ScanFailure:
    condition: ScanCondition
    message: str
    error: Optional[BaseException] = None


class ReadOutcome(Enum):
    TAG = "tag"
    NO_TAG = "no_tag"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    MALFORMED = "malformed"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class ReadResult:
    outcome: ReadOutcome
    payload: Optional[TagPayload] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True, slots=True)
class ScanTimings:
    """Scan timing parameters, in seconds."""

    manual_read_timeout: float = DEFAULT_MANUAL_READ_TIMEOUT
    poll_read_timeout: float = DEFAULT_POLL_READ_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    success_cooldown: float = DEFAULT_SUCCESS_COOLDOWN
    processing_cooldown: float = DEFAULT_PROCESSING_COOLDOWN
    poll_interval: float = DEFAULT_POLL_INTERVAL
    cancel_grace: float = DEFAULT_CANCEL_GRACE

    def __post_init__(self) -> None:
        for name in ("manual_read_timeout", "poll_read_timeout", "write_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("success_cooldown", "processing_cooldown", "poll_interval", "cancel_grace"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")


class ScanHandle:
    """Stop handle for a continuous scan. Calling it is the same as ``stop()``."""

    def __init__(
        self,
        controller: Optional["TagScanController"] = None,
        task: Optional[asyncio.Task] = None,
    ) -> None:
        self._controller = controller
        self._task = task

    @classmethod
    def noop(cls) -> "ScanHandle":
        return cls()

    @property
    def is_noop(self) -> bool:
        return self._task is None

    @property
    def active(self) -> bool:
        if self._controller is None or self._task is None or self._task.done():
            return False
        return self._controller.state.scanning and self._controller.loop_task is self._task

    def stop(self) -> None:
        if self._controller is not None and self._task is not None:
            self._controller.stop_scan(self._task)

    def __call__(self) -> None:
        self.stop()

    async def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Wait for the poll loop to exit. Returns False on timeout."""
        if self._task is None or self._task.done():
            return True
        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        return self._task in done


class TagScanController:
    """Owns the NFC adapter lifecycle and turns taps into menu items."""

    def __init__(
        self,
        adapter: BaseNfcAdapter,
        menu: MenuLookupService,
        *,
        state: Optional[ScannerState] = None,
        notifier: Optional[Notifier] = None,
        timings: Optional[ScanTimings] = None,
        development_mode: bool = False,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
    ) -> None:
        if max_consecutive_failures < 0:
            raise ValueError("max_consecutive_failures must not be negative")
        self.adapter = adapter
        self.menu = menu
        self.state = state if state is not None else ScannerState()
        self.notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self.timings = timings or ScanTimings()
        self.development_mode = development_mode
        self.max_consecutive_failures = max_consecutive_failures

        self._probe_lock = asyncio.Lock()
        self._init_lock = asyncio.Lock()
        self._start_lock = asyncio.Lock()
        self._technology_lock = asyncio.Lock()
        self._pending_request: Optional[asyncio.Future] = None
        self._loop_task: Optional[asyncio.Task] = None

    @property
    def loop_task(self) -> Optional[asyncio.Task]:
        return self._loop_task

    # ------------------------------------------------------------------
    # Lifecycle

    async def check_module_availability(self) -> bool:
        """Probe the adapter once; later calls return the cached answer."""
        state = self.state
        if state.module_available is ModuleAvailability.UNKNOWN:
            async with self._probe_lock:
                if state.module_available is ModuleAvailability.UNKNOWN:
                    try:
                        supported = await self.adapter.is_supported()
                    except Exception as exc:
                        logger.debug("NFC module not available in this environment: %s", exc)
                        state.module_available = ModuleAvailability.UNAVAILABLE
                    else:
                        state.module_available = (
                            ModuleAvailability.AVAILABLE if supported else ModuleAvailability.UNAVAILABLE
                        )
                        logger.debug("NFC module availability: %s", state.module_available.value)
        return state.module_available is ModuleAvailability.AVAILABLE

    async def initialize(self) -> bool:
        state = self.state
        if state.initialized:
            return True
        if not await self.check_module_availability():
            return False

        async with self._init_lock:
            if state.initialized:
                return True
            try:
                supported = await self.adapter.is_supported()
                if not supported:
                    if self.development_mode:
                        logger.debug("NFC not supported on this device (development mode)")
                    else:
                        logger.warning("NFC not supported on this device")
                        self._notify(notices.not_supported())
                    return False
                await self.adapter.start()
            except Exception as exc:
                if is_module_missing(exc):
                    logger.debug("NFC module missing, disabling NFC: %s", exc)
                    state.module_available = ModuleAvailability.UNAVAILABLE
                else:
                    logger.error("NFC initialization error: %s", exc)
                return False

            state.initialized = True
            logger.info("NFC initialized (%s adapter)", self.adapter.name)
            return True

    async def check_enabled(self) -> bool:
        if not await self.check_module_availability():
            return False
        try:
            return bool(await self.adapter.is_enabled())
        except Exception as exc:
            logger.error("Error checking NFC status: %s", exc)
            return False

    async def cleanup(self) -> None:
        """Stop scanning and release the reader. Safe in any state."""
        try:
            task = self._loop_task
            self._halt()
            if task is not None:
                await cancel_task_safely(
                    task,
                    "NFC scan loop",
                    timeout=self.timings.cancel_grace,
                    logger=logger,
                )
            self._loop_task = None
            self.state.detection.reset()
            if self.state.module_available is ModuleAvailability.AVAILABLE:
                await self._release()
        except Exception as exc:
            logger.error("Error cleaning up NFC: %s", exc)

    async def shutdown(self) -> None:
        """Cleanup, then close the adapter's driver resources."""
        await self.cleanup()
        try:
            await self.adapter.close()
        except Exception as exc:
            logger.error("Error closing NFC adapter: %s", exc)

    async def open_settings(self) -> bool:
        """Send the user to the NFC settings. Returns True if a screen opened."""
        if not await self.check_module_availability():
            self._notify(notices.unavailable())
            return False
        if self.adapter.supports_settings_intent:
            try:
                await self.adapter.open_platform_settings()
                return True
            except Exception as exc:
                logger.error("Error opening NFC settings: %s", exc)
        self._notify(notices.enable_nfc())
        return False

    # ------------------------------------------------------------------
    # Reads and writes

    async def read_tag(self, timeout: Optional[float] = None) -> Optional[TagPayload]:
        """One-shot read. Returns the tag payload or None."""
        if timeout is None:
            timeout = self.timings.manual_read_timeout
        result = await self._read_once(timeout, quiet=self.state.scanning)
        return result.payload

    async def write_tag(self, payload: TagPayload) -> bool:
        if not await self.check_module_availability():
            return False
        if not await self.initialize():
            return False

        try:
            message = encode_tag_message(payload)
        except ValueError as exc:
            logger.error("Cannot encode tag payload: %s", exc)
            self._notify(notices.write_error())
            return False

        timeout = self.timings.write_timeout
        deadline = asyncio.get_running_loop().time() + timeout
        if not await self._acquire_technology(timeout):
            logger.info("Reader busy for %.1fs, write abandoned", timeout)
            self._notify(notices.no_tag_found())
            return False

        try:
            released = False
            try:
                try:
                    await self._request_technology(deadline)
                except TechnologyRequestTimeout:
                    released = True
                    logger.info("No tag presented within %.1fs for write", timeout)
                    self._notify(notices.no_tag_found())
                    return False
                try:
                    await self._within(self.adapter.write_message(message), deadline)
                except TechnologyRequestTimeout:
                    released = True
                    logger.error("Tag write did not finish within %.1fs", timeout)
                    self._notify(notices.write_error())
                    return False
            except Exception as exc:
                if is_cancellation(exc):
                    logger.debug("Tag write cancelled: %s", exc)
                    return False
                logger.error("NFC write error: %s", exc)
                self._notify(notices.write_error())
                return False
            finally:
                if not released:
                    await self._release()
        finally:
            self._technology_lock.release()

        logger.info("Wrote menu item %s to tag (%d bytes)", payload.menu_item_id, len(message))
        self._notify(notices.write_success())
        return True

    async def _read_once(self, timeout: float, *, quiet: bool) -> ReadResult:
        if not await self.check_module_availability():
            return ReadResult(ReadOutcome.UNAVAILABLE)
        if not await self.initialize():
            return ReadResult(ReadOutcome.UNAVAILABLE)

        deadline = asyncio.get_running_loop().time() + timeout
        if not await self._acquire_technology(timeout):
            logger.debug("Reader busy for %.2fs", timeout)
            return ReadResult(ReadOutcome.TIMEOUT)

        try:
            released = False
            try:
                try:
                    await self._request_technology(deadline)
                    tag = await self._within(self.adapter.get_tag(), deadline)
                except TechnologyRequestTimeout:
                    released = True
                    logger.debug("No tag within %.2fs", timeout)
                    return ReadResult(ReadOutcome.TIMEOUT)

                if tag is None or not tag.has_records:
                    logger.debug("Tag carries no NDEF message")
                    return ReadResult(ReadOutcome.NO_TAG)

                try:
                    payload = decode_tag_record(tag)
                except PayloadDecodeError as exc:
                    logger.warning("Invalid menu data on tag %s: %s", tag.uid, exc)
                    if not quiet:
                        self._notify(notices.invalid_tag())
                    return ReadResult(ReadOutcome.MALFORMED, error=exc)

                logger.info("Tag %s -> menu item %s", tag.uid, payload.menu_item_id)
                return ReadResult(ReadOutcome.TAG, payload=payload)
            except Exception as exc:
                if is_cancellation(exc):
                    logger.debug("Technology request cancelled: %s", exc)
                    return ReadResult(ReadOutcome.CANCELLED, error=exc)
                logger.error("NFC read error: %s", exc)
                if not quiet:
                    self._notify(notices.read_error())
                return ReadResult(ReadOutcome.FAILED, error=exc)
            finally:
                if not released:
                    await self._release()
        finally:
            self._technology_lock.release()

    async def _acquire_technology(self, timeout: float) -> bool:
        """Take the technology lock, waiting at most ``timeout``.

        The caller must release the lock when this returns True.
        """
        lock = self._technology_lock
        if not lock.locked():
            await lock.acquire()
            return True
        waiter = asyncio.ensure_future(lock.acquire())
        try:
            done, _ = await asyncio.wait({waiter}, timeout=max(timeout, 0.0))
        except asyncio.CancelledError:
            self._drop_lock_waiter(waiter)
            raise
        if waiter in done:
            return True
        self._drop_lock_waiter(waiter)
        return False

    def _drop_lock_waiter(self, waiter: asyncio.Future) -> None:
        def give_back(fut: asyncio.Future) -> None:
            if not fut.cancelled() and fut.exception() is None:
                self._technology_lock.release()

        waiter.cancel()
        waiter.add_done_callback(give_back)

    async def _request_technology(self, deadline: float) -> None:
        """Claim the radio before ``deadline`` (event loop time)."""
        await self._within(self.adapter.request_technology(NfcTech.NDEF), deadline)

    async def _within(self, call: Awaitable[T], deadline: float) -> T:
        """Await an adapter call, racing ``deadline`` (event loop time).

        The call runs as its own task so a stop can cancel it. On timeout
        the task and the adapter request are both cancelled before
        TechnologyRequestTimeout is raised.
        """
        task = asyncio.ensure_future(call)
        self._pending_request = task
        remaining = max(deadline - asyncio.get_running_loop().time(), 0.0)
        try:
            done, _ = await asyncio.wait({task}, timeout=remaining)
        except asyncio.CancelledError:
            task.cancel()
            discard_task_result(task)
            raise
        finally:
            if self._pending_request is task:
                self._pending_request = None

        if task not in done:
            await self._abandon_request(task)
            raise TechnologyRequestTimeout("Deadline passed before the reader answered")
        if task.cancelled():
            raise TechnologyRequestCancelled("Technology request cancelled")
        return task.result()

    async def _abandon_request(self, task: asyncio.Future) -> None:
        task.cancel()
        cancel_call = asyncio.ensure_future(self.adapter.cancel_technology_request())
        done, pending = await asyncio.wait({task, cancel_call}, timeout=self.timings.cancel_grace)
        for leftover in pending:
            leftover.cancel()
            logger.debug("Abandoned technology request still pending after %.2fs", self.timings.cancel_grace)
        discard_task_result(task)
        discard_task_result(cancel_call)
        if cancel_call in done and not cancel_call.cancelled() and cancel_call.exception() is not None:
            logger.debug("Error cancelling technology request: %s", cancel_call.exception())

    async def _release(self) -> None:
        """Release the technology request, bounded by ``cancel_grace``."""
        call = asyncio.ensure_future(self.adapter.cancel_technology_request())
        done, _ = await asyncio.wait({call}, timeout=self.timings.cancel_grace)
        discard_task_result(call)
        if call not in done:
            call.cancel()
            logger.debug("Technology release did not finish within %.2fs", self.timings.cancel_grace)
        elif not call.cancelled() and call.exception() is not None:
            logger.debug("Error releasing technology request: %s", call.exception())

    # ------------------------------------------------------------------
    # Continuous scanning

    async def start_continuous_scan(
        self,
        on_detected: DetectedCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> ScanHandle:
        async with self._start_lock:
            existing = self._loop_task
            if existing is not None and not existing.done():
                if self.state.scanning:
                    logger.debug("Continuous scan already running")
                    return ScanHandle(self, existing)
                await self._wait_loop_exit(existing)

            if not await self.check_module_availability():
                logger.debug("NFC module unavailable, continuous scan not started")
                return ScanHandle.noop()

            if not await self.check_enabled():
                logger.warning("NFC is not enabled, continuous scan not started")
                await self._report(on_error, ScanFailure(ScanCondition.NOT_ENABLED, "NFC is not enabled"))
                return ScanHandle.noop()

            if not await self.initialize():
                logger.warning("NFC initialization failed, continuous scan not started")
                await self._report(
                    on_error,
                    ScanFailure(ScanCondition.INITIALIZATION_FAILED, "Failed to initialize NFC"),
                )
                return ScanHandle.noop()

            self.state.scanning = True
            task = create_logged_task(
                self._scan_loop(on_detected, on_error),
                logger=logger,
                context="NFC scan loop",
            )
            self._loop_task = task
            return ScanHandle(self, task)

    def stop_scan(self, task: Optional[asyncio.Task] = None) -> None:
        """Stop the poll loop at its next iteration boundary. Never raises."""
        if task is not None and task is not self._loop_task:
            return
        if not self.state.scanning and self._pending_request is None:
            return
        self._halt()
        logger.info("Continuous scan stopping")
        if self.state.module_available is not ModuleAvailability.AVAILABLE:
            return
        try:
            create_logged_task(self._release(), logger=logger, context="NFC stop release")
        except RuntimeError as exc:
            logger.debug("No running loop to release technology request: %s", exc)

    def _halt(self) -> None:
        self.state.scanning = False
        request = self._pending_request
        if request is not None and not request.done():
            request.cancel()

    async def _wait_loop_exit(self, task: asyncio.Task) -> None:
        limit = self.timings.poll_read_timeout + self.timings.cancel_grace
        done, _ = await asyncio.wait({task}, timeout=limit)
        if task not in done:
            await cancel_task_safely(task, "previous NFC scan loop", timeout=self.timings.cancel_grace, logger=logger)

    async def _scan_loop(self, on_detected: DetectedCallback, on_error: Optional[ErrorCallback]) -> None:
        timings = self.timings
        failures = 0
        logger.info("Continuous scan started")
        try:
            while self.state.scanning:
                result: Optional[ReadResult] = None
                try:
                    result = await self._read_once(timings.poll_read_timeout, quiet=True)
                except Exception as exc:
                    if not isinstance(exc, (asyncio.TimeoutError, TechnologyRequestTimeout)):
                        logger.error("Scan loop read error: %s", exc)
                        await self._report(on_error, ScanFailure(ScanCondition.READ_FAILED, str(exc), exc))

                if not self.state.scanning:
                    if result is not None and result.payload is not None:
                        logger.debug("Dropping tag %s read after stop", result.payload.menu_item_id)
                    break

                if result is not None:
                    if result.outcome is ReadOutcome.TAG and result.payload is not None:
                        failures = 0
                        await self.handle_tag_detected(result.payload, on_detected)
                        await asyncio.sleep(timings.success_cooldown)
                    elif result.outcome in (ReadOutcome.FAILED, ReadOutcome.UNAVAILABLE):
                        failures += 1
                        if self.max_consecutive_failures and failures >= self.max_consecutive_failures:
                            logger.error("%d consecutive NFC read failures", failures)
                            await self._report(
                                on_error,
                                ScanFailure(
                                    ScanCondition.HARDWARE_FAULT,
                                    f"{failures} consecutive NFC read failures",
                                    result.error,
                                ),
                            )
                            failures = 0
                    else:
                        failures = 0

                await asyncio.sleep(timings.poll_interval)
        finally:
            if self._loop_task is asyncio.current_task():
                self.state.scanning = False
            logger.info("Continuous scan stopped")

    async def handle_tag_detected(self, payload: TagPayload, on_detected: DetectedCallback) -> bool:
        """Resolve a detected tag and hand the item to ``on_detected``.

        Detections arriving while a previous one is processing or cooling
        down are dropped. Returns True when the callback ran.
        """
        lock = self.state.detection
        if not lock.try_acquire():
            logger.debug("Busy with a previous tag, dropping %s", payload.menu_item_id)
            return False

        try:
            try:
                item = await self.menu.get_by_id(payload.menu_item_id)
            except MenuItemNotFound:
                item = None
            if item is None:
                logger.warning("Menu item %s not found", payload.menu_item_id)
                self._notify(notices.item_not_found())
                return False

            result = on_detected(item, payload)
            if inspect.isawaitable(result):
                await result
            return True
        except Exception as exc:
            logger.error("Failed to process tag for %s: %s", payload.menu_item_id, exc)
            self._notify(notices.scan_failed())
            return False
        finally:
            lock.release_after(self.timings.processing_cooldown)

    # ------------------------------------------------------------------
    # Helpers

    def _notify(self, notice: Notice) -> None:
        try:
            self.notifier.notify(notice)
        except Exception:
            logger.exception("Notifier failed for %r", notice.title)

    async def _report(self, on_error: Optional[ErrorCallback], failure: ScanFailure) -> None:
        if on_error is None:
            return
        try:
            result = on_error(failure)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Error callback failed for %s", failure.condition.value)


__all__ = [
    "ReadOutcome",
    "ReadResult",
    "ScanCondition",
    "ScanFailure",
    "ScanHandle",
    "ScanTimings",
    "TagScanController",
]
