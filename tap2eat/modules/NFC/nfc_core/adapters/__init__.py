"""NFC reader adapters."""

from typing import Any

from .base_adapter import BaseNfcAdapter
from .pn532_adapter import Pn532NfcAdapter
from .simulated_adapter import SimulatedNfcAdapter, text_tag

ADAPTERS = {
    SimulatedNfcAdapter.name: SimulatedNfcAdapter,
    Pn532NfcAdapter.name: Pn532NfcAdapter,
}


def create_adapter(kind: str, **options: Any) -> BaseNfcAdapter:
    """Instantiate the adapter registered under ``kind``."""
    try:
        adapter_cls = ADAPTERS[kind.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown NFC adapter {kind!r}; expected one of {sorted(ADAPTERS)}") from None
    return adapter_cls(**options)


__all__ = [
    "ADAPTERS",
    "BaseNfcAdapter",
    "Pn532NfcAdapter",
    "SimulatedNfcAdapter",
    "create_adapter",
    "text_tag",
]
