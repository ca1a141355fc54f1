"""Unit test fixtures for isolated, fast test execution.

This conftest provides fixtures specifically for unit tests that:
- Run in complete isolation (no reader hardware, no network)
- Execute quickly (scan timings are shrunk to tens of milliseconds)
- Use the simulated adapter or the mocks in tests/infrastructure/mocks
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tap2eat.core.config_manager import ConfigManager
from tap2eat.modules.Menu.catalog import MenuCatalog
from tap2eat.modules.Menu.models import MenuItem
from tap2eat.modules.NFC.nfc_core.adapters.simulated_adapter import SimulatedNfcAdapter
from tap2eat.modules.NFC.nfc_core.scan_controller import ScanTimings, TagScanController
from tap2eat.modules.NFC.nfc_core.scanner_state import ScannerState
from tests.infrastructure.mocks.nfc_mocks import RecordingNotifier


# =============================================================================
# Isolated Environment Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def isolated_state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the per-user state directory at a temporary path."""
    state_dir = tmp_path / "state"
    monkeypatch.setenv("TAP2EAT_STATE_DIR", str(state_dir))
    return state_dir


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """ConfigManager whose override files land in the test's tmp dir."""
    return ConfigManager(overrides_dir=tmp_path / "overrides")


# =============================================================================
# NFC Fixtures
# =============================================================================

@pytest.fixture
def fast_timings() -> ScanTimings:
    return ScanTimings(
        manual_read_timeout=0.5,
        poll_read_timeout=0.2,
        write_timeout=0.5,
        success_cooldown=0.05,
        processing_cooldown=0.1,
        poll_interval=0.01,
        cancel_grace=0.05,
    )


@pytest.fixture
def burger() -> MenuItem:
    return MenuItem(id="m1", name="Burger", price=9.99, image_url="https://example.com/burger.png")


@pytest.fixture
def fries() -> MenuItem:
    return MenuItem(id="m2", name="Fries", price=3.25)


@pytest.fixture
def menu_catalog(burger: MenuItem, fries: MenuItem) -> MenuCatalog:
    return MenuCatalog([burger, fries])


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def simulated_adapter() -> SimulatedNfcAdapter:
    return SimulatedNfcAdapter()


@pytest.fixture
def scanner_state() -> ScannerState:
    return ScannerState()


@pytest.fixture
def make_controller(menu_catalog, notifier, fast_timings):
    """Factory for controllers around a given adapter."""

    def _make(adapter, **kwargs) -> TagScanController:
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("timings", fast_timings)
        kwargs.setdefault("state", ScannerState())
        menu = kwargs.pop("menu", menu_catalog)
        return TagScanController(adapter, menu, **kwargs)

    return _make


@pytest.fixture
def controller(make_controller, simulated_adapter) -> TagScanController:
    return make_controller(simulated_adapter)
