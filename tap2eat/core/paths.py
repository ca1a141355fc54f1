"""Where tap2eat finds its packaged files and keeps per-user state."""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PACKAGE_ROOT / "data"

NFC_CONFIG_PATH = PACKAGE_ROOT / "modules" / "NFC" / "config.txt"
DEFAULT_MENU_PATH = DATA_DIR / "menu.json"
DEFAULT_STORES_PATH = DATA_DIR / "stores.json"

STATE_DIR_ENV = "TAP2EAT_STATE_DIR"


def user_state_dir() -> Path:
    """Per-user state root: ``$TAP2EAT_STATE_DIR`` or ``~/.tap2eat``."""
    configured = os.environ.get(STATE_DIR_ENV)
    return Path(configured).expanduser() if configured else Path.home() / ".tap2eat"


def user_config_overrides_dir() -> Path:
    return user_state_dir() / "config_overrides"


__all__ = [
    "DATA_DIR",
    "DEFAULT_MENU_PATH",
    "DEFAULT_STORES_PATH",
    "NFC_CONFIG_PATH",
    "PACKAGE_ROOT",
    "STATE_DIR_ENV",
    "user_config_overrides_dir",
    "user_state_dir",
]
