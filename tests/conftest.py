"""Suite-wide pytest setup: import path, markers and the hardware opt-in."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Also run tests that talk to a physical PN532 reader",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "hardware: needs a physical NFC reader (see --run-hardware)")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-hardware"):
        return
    skip = pytest.mark.skip(reason="hardware test; pass --run-hardware to run it")
    for item in items:
        if item.get_closest_marker("hardware") is not None:
            item.add_marker(skip)


@pytest.fixture
def package_data_dir() -> Path:
    """The sample menu and stores shipped inside the package."""
    return PROJECT_ROOT / "tap2eat" / "data"
