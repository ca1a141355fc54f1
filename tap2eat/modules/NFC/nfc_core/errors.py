"""NFC error types and the classifiers the scan controller uses on them."""

from __future__ import annotations

import re


class NfcError(RuntimeError):
    """Base class for adapter failures."""


class NfcModuleMissingError(NfcError):
    """The reader driver (native module) is not present in this runtime."""


class NfcNotSupportedError(NfcError):
    """The device has no usable NFC reader."""


class TechnologyRequestCancelled(NfcError):
    """A pending technology request was cancelled before a tag showed up."""


class TechnologyRequestTimeout(NfcError):
    """No tag entered the field before the read timeout."""


class NdefDecodeError(ValueError):
    """Raw bytes are not a well-formed NDEF message or TLV block."""


class PayloadDecodeError(ValueError):
    """A tag record does not carry a valid menu payload."""


_CANCELLATION_PATTERN = re.compile(r"cancel", re.IGNORECASE)
_MODULE_MISSING_PATTERN = re.compile(
    r"native module|nativemodule|no module named|not linked|module .*not (?:found|available)",
    re.IGNORECASE,
)


def is_cancellation(exc: BaseException) -> bool:
    """True when ``exc`` means the user (or a stop request) cancelled the read."""
    if isinstance(exc, TechnologyRequestCancelled):
        return True
    return bool(_CANCELLATION_PATTERN.search(str(exc)))


def is_module_missing(exc: BaseException) -> bool:
    """True when ``exc`` means the NFC driver is absent rather than broken."""
    if isinstance(exc, (NfcModuleMissingError, ImportError)):
        return True
    return bool(_MODULE_MISSING_PATTERN.search(str(exc)))


__all__ = [
    "NfcError",
    "NfcModuleMissingError",
    "NfcNotSupportedError",
    "TechnologyRequestCancelled",
    "TechnologyRequestTimeout",
    "NdefDecodeError",
    "PayloadDecodeError",
    "is_cancellation",
    "is_module_missing",
]
