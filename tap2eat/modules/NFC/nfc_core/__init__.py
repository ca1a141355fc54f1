"""NFC core package - codecs, adapters and the tag scan controller."""

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
    NdefDecodeError,
    NfcError,
    NfcModuleMissingError,
    NfcNotSupportedError,
    PayloadDecodeError,
    TechnologyRequestCancelled,
    TechnologyRequestTimeout,
)
from .ndef import NdefRecord, TruncatedDataError, decode_message, encode_message, text_record
from .tag_types import TagRecord
from .payload import TagPayload, decode_tag_record, encode_tag_message
from .adapters import BaseNfcAdapter, Pn532NfcAdapter, SimulatedNfcAdapter, create_adapter
from .detection_lock import DetectionLock, DetectionState
from .scanner_state import ModuleAvailability, ScannerState
from .notices import LoggingNotifier, Notice, NoticeAction, NoticeLevel, Notifier
from .scan_controller import (
    ReadOutcome,
    ReadResult,
    ScanCondition,
    ScanFailure,
    ScanHandle,
    ScanTimings,
    TagScanController,
)

__all__ = [
    # Constants
    "DEFAULT_CANCEL_GRACE",
    "DEFAULT_MANUAL_READ_TIMEOUT",
    "DEFAULT_MAX_CONSECUTIVE_FAILURES",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_POLL_READ_TIMEOUT",
    "DEFAULT_PROCESSING_COOLDOWN",
    "DEFAULT_SUCCESS_COOLDOWN",
    "DEFAULT_WRITE_TIMEOUT",
    "NfcTech",
    # Errors
    "NdefDecodeError",
    "NfcError",
    "NfcModuleMissingError",
    "NfcNotSupportedError",
    "PayloadDecodeError",
    "TechnologyRequestCancelled",
    "TechnologyRequestTimeout",
    # Codecs and types
    "NdefRecord",
    "TruncatedDataError",
    "decode_message",
    "encode_message",
    "text_record",
    "TagRecord",
    "TagPayload",
    "decode_tag_record",
    "encode_tag_message",
    # Adapters
    "BaseNfcAdapter",
    "Pn532NfcAdapter",
    "SimulatedNfcAdapter",
    "create_adapter",
    # State
    "DetectionLock",
    "DetectionState",
    "ModuleAvailability",
    "ScannerState",
    # Notices
    "LoggingNotifier",
    "Notice",
    "NoticeAction",
    "NoticeLevel",
    "Notifier",
    # Controller
    "ReadOutcome",
    "ReadResult",
    "ScanCondition",
    "ScanFailure",
    "ScanHandle",
    "ScanTimings",
    "TagScanController",
]
