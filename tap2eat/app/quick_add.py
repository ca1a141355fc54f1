"""Quick add: tap a menu tag, get the item in the cart.

This is the composition root for the NFC flow. It wires an adapter, a
ScannerState, the menu catalog and the cart into a TagScanController and
turns detections into cart entries and notices.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

from tap2eat.core.asyncio_utils import create_logged_task
from tap2eat.core.logging_utils import get_module_logger
from tap2eat.modules.Cart import CartItem, CartStore
from tap2eat.modules.Menu import MenuItem, MenuLookupService, load_menu_catalog
from tap2eat.modules.NFC.config import NFCConfig
from tap2eat.modules.NFC.nfc_core import notices
from tap2eat.modules.NFC.nfc_core.adapters import BaseNfcAdapter
from tap2eat.modules.NFC.nfc_core.notices import LoggingNotifier, Notifier
from tap2eat.modules.NFC.nfc_core.payload import TagPayload
from tap2eat.modules.NFC.nfc_core.scan_controller import (
    ScanCondition,
    ScanFailure,
    ScanHandle,
    TagScanController,
)
from tap2eat.modules.NFC.nfc_core.scanner_state import ScannerState

logger = get_module_logger("QuickAdd")


class QuickAddSession:
    """Adds scanned menu items to a cart."""

    def __init__(
        self,
        controller: TagScanController,
        cart: CartStore,
        notifier: Optional[Notifier] = None,
        *,
        on_view_cart: Optional[Callable[[], Any]] = None,
        owns_adapter: bool = False,
        owns_menu: bool = False,
    ) -> None:
        self.controller = controller
        self.cart = cart
        self.notifier: Notifier = notifier if notifier is not None else controller.notifier
        self.nfc_enabled = False
        self.added: List[CartItem] = []
        self._on_view_cart = on_view_cart
        self._owns_adapter = owns_adapter
        self._owns_menu = owns_menu
        self._handle: Optional[ScanHandle] = None
        self._settings_tasks: set[asyncio.Task] = set()

    @property
    def handle(self) -> Optional[ScanHandle]:
        return self._handle

    async def check_status(self) -> bool:
        """True when the reader initialized and NFC is switched on."""
        initialized = await self.controller.initialize()
        self.nfc_enabled = initialized and await self.controller.check_enabled()
        return self.nfc_enabled

    async def scan_once(self, timeout: Optional[float] = None) -> Optional[CartItem]:
        """Read one tag and add its item to the cart."""
        if not await self.controller.check_module_availability():
            logger.debug("NFC unavailable, quick add skipped")
            return None
        if not await self.check_status():
            self._notify_disabled()
            return None

        payload = await self.controller.read_tag(timeout)
        if payload is None:
            return None

        before = len(self.added)
        await self.controller.handle_tag_detected(payload, self._add_to_cart)
        if len(self.added) > before:
            return self.added[-1]
        return None

    async def start_quick_add(self) -> ScanHandle:
        """Keep scanning, adding every recognised tag to the cart."""
        self._handle = await self.controller.start_continuous_scan(self._add_to_cart, self._on_scan_error)
        return self._handle

    def stop_quick_add(self) -> None:
        if self._handle is not None:
            self._handle.stop()

    async def close(self) -> None:
        self.stop_quick_add()
        if self._owns_adapter:
            await self.controller.shutdown()
        else:
            await self.controller.cleanup()
        if self._owns_menu:
            close = getattr(self.controller.menu, "close", None)
            if close is not None:
                await close()
        for task in list(self._settings_tasks):
            task.cancel()

    def _add_to_cart(self, item: MenuItem, payload: TagPayload) -> CartItem:
        cart_item = self.cart.add_item(CartItem.from_menu_item(item))
        self.added.append(cart_item)
        logger.info("Added %s to cart via tag (cart holds %d items)", item.name, self.cart.total_items)
        self.notifier.notify(notices.item_added(item.name, view_cart=self._on_view_cart))
        return cart_item

    def _on_scan_error(self, failure: ScanFailure) -> None:
        if failure.condition is ScanCondition.NOT_ENABLED:
            self._notify_disabled()
            return
        logger.warning("Quick add scan error (%s): %s", failure.condition.value, failure.message)

    def _notify_disabled(self) -> None:
        self.notifier.notify(notices.nfc_disabled(open_settings=self._open_settings))

    def _open_settings(self) -> asyncio.Task:
        return create_logged_task(
            self.controller.open_settings(),
            logger=logger,
            context="NFC open settings",
            pending=self._settings_tasks,
        )


async def build_session(
    config: NFCConfig,
    *,
    adapter: Optional[BaseNfcAdapter] = None,
    menu: Optional[MenuLookupService] = None,
    notifier: Optional[Notifier] = None,
    cart: Optional[CartStore] = None,
    state: Optional[ScannerState] = None,
) -> QuickAddSession:
    """Assemble a QuickAddSession from config, filling in whatever is not given."""
    notifier = notifier if notifier is not None else LoggingNotifier()
    owns_menu = menu is None
    if menu is None and config.uses_remote_menu:
        menu = config.create_remote_menu()
        logger.info("Menu items resolved from %s", config.menu_endpoint)
    elif menu is None:
        menu = await load_menu_catalog(config.menu_catalog)
    owns_adapter = adapter is None
    if adapter is None:
        adapter = config.create_adapter()

    controller = TagScanController(
        adapter,
        menu,
        state=state if state is not None else ScannerState(),
        notifier=notifier,
        timings=config.to_timings(),
        development_mode=config.development_mode,
        max_consecutive_failures=config.max_consecutive_failures,
    )
    return QuickAddSession(
        controller,
        cart if cart is not None else CartStore(),
        notifier,
        owns_adapter=owns_adapter,
        owns_menu=owns_menu,
    )


__all__ = ["QuickAddSession", "build_session"]
