"""Unit tests for the quick add session."""

from __future__ import annotations

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from tap2eat.app.quick_add import QuickAddSession, build_session
from tap2eat.modules.Cart.cart_store import CartStore
from tap2eat.modules.Menu.remote import RemoteMenuLookup
from tap2eat.modules.NFC.config import NFCConfig
from tap2eat.modules.NFC.nfc_core.adapters.simulated_adapter import SimulatedNfcAdapter
from tests.infrastructure.mocks.nfc_mocks import RaisingProbeAdapter


BURGER_TAG = '{"menuItemId":"m1","name":"Burger","price":9.99}'


async def wait_until(predicate, timeout: float = 2.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() >= deadline:
            return False
        await asyncio.sleep(0.005)
    return True


@pytest.fixture
def make_session(make_controller, notifier):
    sessions = []

    def _make(adapter, **kwargs) -> QuickAddSession:
        session = QuickAddSession(make_controller(adapter), CartStore(), notifier, **kwargs)
        sessions.append(session)
        return session

    return _make


class TestScanOnce:

    @pytest.mark.asyncio
    async def test_tap_adds_item(self, make_session, simulated_adapter, notifier):
        views = []
        session = make_session(simulated_adapter, on_view_cart=lambda: views.append(True))
        simulated_adapter.present_tag(BURGER_TAG)
        try:
            cart_item = await session.scan_once()

            assert cart_item is not None
            assert cart_item.id == "m1"
            assert session.cart.total_items == 1
            assert session.nfc_enabled is True

            assert notifier.titles == ["Item Added!"]
            notice = notifier.notices[0]
            assert notice.message == "Burger has been added to your cart"
            notice.action("View Cart").handler()
            assert views == [True]
        finally:
            await session.close()

    @pytest.mark.asyncio
    async def test_no_tag(self, make_session, simulated_adapter, notifier):
        session = make_session(simulated_adapter)
        try:
            assert await session.scan_once(timeout=0.05) is None
            assert session.cart.total_items == 0
            assert notifier.notices == []
        finally:
            await session.close()

    @pytest.mark.asyncio
    async def test_unknown_item(self, make_session, simulated_adapter, notifier):
        session = make_session(simulated_adapter)
        simulated_adapter.present_tag('{"menuItemId":"m404"}')
        try:
            assert await session.scan_once() is None
            assert notifier.titles == ["Item Not Found"]
        finally:
            await session.close()

    @pytest.mark.asyncio
    async def test_unavailable_module_is_silent(self, make_session, notifier):
        session = make_session(RaisingProbeAdapter())
        try:
            assert await session.scan_once() is None
            assert await session.check_status() is False
            assert notifier.notices == []
        finally:
            await session.close()

    @pytest.mark.asyncio
    async def test_disabled_offers_settings(self, make_session, notifier):
        adapter = SimulatedNfcAdapter(enabled=False)
        session = make_session(adapter)
        try:
            assert await session.scan_once() is None
            assert notifier.titles == ["NFC Disabled"]

            notice = notifier.notices[0]
            assert [action.label for action in notice.actions] == ["Cancel", "Open Settings"]
            task = notice.action("Open Settings").handler()
            assert await task is True
            assert adapter.settings_opened == 1
        finally:
            await session.close()


class TestContinuousQuickAdd:

    @pytest.mark.asyncio
    async def test_taps_fill_cart(self, make_session, simulated_adapter, fast_timings):
        session = make_session(simulated_adapter)
        handle = await session.start_quick_add()
        try:
            assert session.handle is handle
            simulated_adapter.present_tag(BURGER_TAG)
            assert await wait_until(lambda: session.cart.total_items == 1)

            # the next tap lands after the cooldown window
            await asyncio.sleep(fast_timings.processing_cooldown + 0.05)
            simulated_adapter.present_tag(BURGER_TAG)
            assert await wait_until(lambda: session.cart.total_items == 2)
            assert len(session.cart.items) == 1
        finally:
            await session.close()
        assert not handle.active

    @pytest.mark.asyncio
    async def test_disabled_reader_notifies(self, make_session, notifier):
        session = make_session(SimulatedNfcAdapter(enabled=False))
        try:
            handle = await session.start_quick_add()
            assert handle.is_noop
            assert notifier.titles == ["NFC Disabled"]
        finally:
            await session.close()

    @pytest.mark.asyncio
    async def test_stop_quick_add(self, make_session, simulated_adapter):
        session = make_session(simulated_adapter)
        handle = await session.start_quick_add()
        session.stop_quick_add()
        assert await handle.wait_closed(timeout=1.0)
        await session.close()


class TestBuildSession:

    @pytest.mark.asyncio
    async def test_uses_given_parts(self, menu_catalog, notifier):
        config = NFCConfig(poll_read_timeout_s=0.7, max_consecutive_failures=3, development_mode=True)
        adapter = SimulatedNfcAdapter()

        session = await build_session(config, adapter=adapter, menu=menu_catalog, notifier=notifier)

        controller = session.controller
        assert controller.adapter is adapter
        assert controller.menu is menu_catalog
        assert controller.timings.poll_read_timeout == 0.7
        assert controller.max_consecutive_failures == 3
        assert controller.development_mode is True
        assert session.notifier is notifier
        await session.close()

    @pytest.mark.asyncio
    async def test_defaults_from_config(self):
        session = await build_session(NFCConfig())

        assert isinstance(session.controller.adapter, SimulatedNfcAdapter)
        assert (await session.controller.menu.get_by_id("m1")).name == "Burger"

        closed = []

        async def close():
            closed.append(True)

        session.controller.adapter.close = close
        await session.close()
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_remote_menu_from_config(self, notifier):
        async def get_document(request: web.Request) -> web.Response:
            if request.match_info["doc_id"] != "m1":
                return web.json_response({"message": "Document not found"}, status=404)
            return web.json_response({"$id": "m1", "name": "House Burger", "price": 11.5})

        app = web.Application()
        app.router.add_get("/v1/databases/{database}/collections/{collection}/documents/{doc_id}", get_document)

        async with TestServer(app) as server:
            config = NFCConfig(
                manual_read_timeout_s=0.5,
                menu_endpoint=str(server.make_url("/v1")),
                menu_project_id="proj",
                menu_database_id="main",
                menu_collection_id="menu",
            )
            adapter = SimulatedNfcAdapter()
            session = await build_session(config, adapter=adapter, notifier=notifier)
            lookup = session.controller.menu
            assert isinstance(lookup, RemoteMenuLookup)

            closed = []
            real_close = lookup.close

            async def close():
                closed.append(True)
                await real_close()

            lookup.close = close
            adapter.present_tag(BURGER_TAG)
            try:
                cart_item = await session.scan_once()
                assert cart_item is not None
                assert cart_item.name == "House Burger"
                assert notifier.titles == ["Item Added!"]
            finally:
                await session.close()

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_remote_menu_needs_collection_ids(self):
        config = NFCConfig(menu_endpoint="https://api.example.com/v1", menu_project_id="proj")

        with pytest.raises(ValueError, match="menu_database_id, menu_collection_id"):
            await build_session(config, adapter=SimulatedNfcAdapter())
