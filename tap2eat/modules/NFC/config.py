"""Typed configuration for the NFC module."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from tap2eat.core.paths import DEFAULT_MENU_PATH, DEFAULT_STORES_PATH
from tap2eat.modules.Menu.remote import RemoteMenuLookup
from tap2eat.modules.base.typed_config import (
    PreferenceSource,
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)

from .nfc_core.adapters import BaseNfcAdapter, create_adapter
from .nfc_core.constants import (
    DEFAULT_CANCEL_GRACE,
    DEFAULT_MANUAL_READ_TIMEOUT,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_READ_TIMEOUT,
    DEFAULT_PROCESSING_COOLDOWN,
    DEFAULT_SUCCESS_COOLDOWN,
    DEFAULT_WRITE_TIMEOUT,
    NTAG_DEFAULT_MAX_PAGES,
)
from .nfc_core.adapters.pn532_adapter import DEFAULT_POLL_TIMEOUT
from .nfc_core.scan_controller import ScanTimings


@dataclass(slots=True)
class NFCConfig:
    """Typed configuration for the NFC module."""

    # Reader
    adapter: str = "simulated"
    development_mode: bool = False

    # Scan timings (seconds)
    manual_read_timeout_s: float = DEFAULT_MANUAL_READ_TIMEOUT
    poll_read_timeout_s: float = DEFAULT_POLL_READ_TIMEOUT
    write_timeout_s: float = DEFAULT_WRITE_TIMEOUT
    success_cooldown_s: float = DEFAULT_SUCCESS_COOLDOWN
    processing_cooldown_s: float = DEFAULT_PROCESSING_COOLDOWN
    poll_interval_s: float = DEFAULT_POLL_INTERVAL
    cancel_grace_s: float = DEFAULT_CANCEL_GRACE
    max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES

    # Data sources
    menu_catalog: Path = field(default_factory=lambda: DEFAULT_MENU_PATH)
    stores_file: Path = field(default_factory=lambda: DEFAULT_STORES_PATH)

    # Remote menu collection (empty endpoint = use menu_catalog)
    menu_endpoint: str = ""
    menu_project_id: str = ""
    menu_database_id: str = ""
    menu_collection_id: str = ""

    # Logging
    log_level: str = "info"
    console_output: bool = True

    # PN532 reader
    pn532_max_pages: int = NTAG_DEFAULT_MAX_PAGES
    pn532_poll_timeout_s: float = DEFAULT_POLL_TIMEOUT

    @classmethod
    def from_preferences(cls, prefs: PreferenceSource, args: Any = None) -> "NFCConfig":
        """Build config from preferences with optional CLI overrides."""
        defaults = cls()

        config = cls(
            # Reader
            adapter=get_pref_str(prefs, "adapter", defaults.adapter).strip().lower(),
            development_mode=get_pref_bool(prefs, "development_mode", defaults.development_mode),
            # Scan timings
            manual_read_timeout_s=get_pref_float(prefs, "manual_read_timeout_s", defaults.manual_read_timeout_s),
            poll_read_timeout_s=get_pref_float(prefs, "poll_read_timeout_s", defaults.poll_read_timeout_s),
            write_timeout_s=get_pref_float(prefs, "write_timeout_s", defaults.write_timeout_s),
            success_cooldown_s=get_pref_float(prefs, "success_cooldown_s", defaults.success_cooldown_s),
            processing_cooldown_s=get_pref_float(prefs, "processing_cooldown_s", defaults.processing_cooldown_s),
            poll_interval_s=get_pref_float(prefs, "poll_interval_s", defaults.poll_interval_s),
            cancel_grace_s=get_pref_float(prefs, "cancel_grace_s", defaults.cancel_grace_s),
            max_consecutive_failures=get_pref_int(
                prefs, "max_consecutive_failures", defaults.max_consecutive_failures
            ),
            # Data sources
            menu_catalog=get_pref_path(prefs, "menu_catalog", defaults.menu_catalog),
            stores_file=get_pref_path(prefs, "stores_file", defaults.stores_file),
            menu_endpoint=get_pref_str(prefs, "menu_endpoint", defaults.menu_endpoint).strip(),
            menu_project_id=get_pref_str(prefs, "menu_project_id", defaults.menu_project_id).strip(),
            menu_database_id=get_pref_str(prefs, "menu_database_id", defaults.menu_database_id).strip(),
            menu_collection_id=get_pref_str(prefs, "menu_collection_id", defaults.menu_collection_id).strip(),
            # Logging
            log_level=get_pref_str(prefs, "log_level", defaults.log_level),
            console_output=get_pref_bool(prefs, "console_output", defaults.console_output),
            # PN532 reader
            pn532_max_pages=get_pref_int(prefs, "pn532_max_pages", defaults.pn532_max_pages),
            pn532_poll_timeout_s=get_pref_float(prefs, "pn532_poll_timeout_s", defaults.pn532_poll_timeout_s),
        )

        # Apply CLI argument overrides if provided
        if args is not None:
            config = config._apply_args_override(args)

        return config

    def _apply_args_override(self, args: Any) -> "NFCConfig":
        """Apply CLI argument overrides to config values."""
        values = asdict(self)

        arg_mappings = {
            "adapter": "adapter",
            "log_level": "log_level",
            "menu": "menu_catalog",
            "stores_file": "stores_file",
            "development_mode": "development_mode",
        }

        for arg_name, config_key in arg_mappings.items():
            if hasattr(args, arg_name):
                val = getattr(args, arg_name)
                if val is not None:
                    values[config_key] = val

        for key in ("menu_catalog", "stores_file"):
            values[key] = Path(values[key])

        return NFCConfig(**values)

    def to_timings(self) -> ScanTimings:
        return ScanTimings(
            manual_read_timeout=self.manual_read_timeout_s,
            poll_read_timeout=self.poll_read_timeout_s,
            write_timeout=self.write_timeout_s,
            success_cooldown=self.success_cooldown_s,
            processing_cooldown=self.processing_cooldown_s,
            poll_interval=self.poll_interval_s,
            cancel_grace=self.cancel_grace_s,
        )

    @property
    def uses_remote_menu(self) -> bool:
        return bool(self.menu_endpoint)

    def validate(self) -> None:
        """Raise ValueError for values a session cannot run with."""
        self.to_timings()
        if self.uses_remote_menu:
            self._check_remote_menu()

    def create_remote_menu(self) -> RemoteMenuLookup:
        """Lookup against the configured document collection."""
        self._check_remote_menu()
        return RemoteMenuLookup(
            self.menu_endpoint,
            self.menu_project_id,
            self.menu_database_id,
            self.menu_collection_id,
        )

    def _check_remote_menu(self) -> None:
        missing = [
            key
            for key in ("menu_project_id", "menu_database_id", "menu_collection_id")
            if not getattr(self, key)
        ]
        if missing:
            raise ValueError(f"menu_endpoint is set but {', '.join(missing)} is empty")

    def create_adapter(self) -> BaseNfcAdapter:
        """Instantiate the configured reader adapter."""
        if self.adapter == "pn532":
            return create_adapter(
                self.adapter,
                poll_timeout=self.pn532_poll_timeout_s,
                max_pages=self.pn532_max_pages,
            )
        return create_adapter(self.adapter)

    def to_dict(self) -> dict[str, Any]:
        """Export config values as dictionary."""
        return asdict(self)


__all__ = ["NFCConfig"]
