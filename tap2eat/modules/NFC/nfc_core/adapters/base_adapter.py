"""Abstract NFC reader adapter.

The scan controller talks to readers only through this interface. Methods
map one-to-one onto what a mobile NFC manager exposes: a capability probe,
start, an enabled query, an exclusive technology request that blocks until
a tag is in the field, tag read/write, and cancellation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..constants import NfcTech
from ..tag_types import TagRecord


class BaseNfcAdapter(ABC):
    """Abstract base class for NFC reader adapters."""

    name: str = "nfc"

    @property
    def supports_settings_intent(self) -> bool:
        """True when ``open_platform_settings`` can take the user somewhere."""
        return False

    @abstractmethod
    async def is_supported(self) -> bool:
        """Report whether a reader exists.

        Raises NfcModuleMissingError when the driver itself is not present.
        """
        ...

    @abstractmethod
    async def start(self) -> None:
        """Bring the reader up. Fails if it is unsupported."""
        ...

    @abstractmethod
    async def is_enabled(self) -> bool:
        ...

    @abstractmethod
    async def request_technology(self, tech: NfcTech) -> None:
        """Claim the radio; returns once a tag is present.

        Raises TechnologyRequestCancelled if ``cancel_technology_request``
        is called first.
        """
        ...

    @abstractmethod
    async def get_tag(self) -> Optional[TagRecord]:
        ...

    @abstractmethod
    async def cancel_technology_request(self) -> None:
        """Release or abort the current request. Safe when nothing is pending."""
        ...

    @abstractmethod
    async def write_message(self, data: bytes) -> None:
        """Write a raw NDEF message to the tag currently claimed."""
        ...

    async def open_platform_settings(self) -> None:
        raise NotImplementedError(f"{self.name} adapter has no settings screen")

    async def close(self) -> None:
        """Release driver resources. Default is a no-op."""
        return None


__all__ = ["BaseNfcAdapter"]
