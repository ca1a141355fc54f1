"""NFC/NDEF protocol constants and scan timing defaults."""

from enum import Enum


class NfcTech(str, Enum):
    """Tag technologies an adapter can be asked to claim."""

    NDEF = "Ndef"


# NDEF record header flags
NDEF_FLAG_MB = 0x80  # message begin
NDEF_FLAG_ME = 0x40  # message end
NDEF_FLAG_CF = 0x20  # chunk flag
NDEF_FLAG_SR = 0x10  # short record
NDEF_FLAG_IL = 0x08  # id length present
NDEF_TNF_MASK = 0x07

# Type Name Format values
TNF_EMPTY = 0x00
TNF_WELL_KNOWN = 0x01
TNF_MEDIA = 0x02
TNF_ABSOLUTE_URI = 0x03
TNF_EXTERNAL = 0x04
TNF_UNKNOWN = 0x05
TNF_UNCHANGED = 0x06

RTD_TEXT = b"T"
TEXT_UTF16_FLAG = 0x80
TEXT_LANG_LENGTH_MASK = 0x3F
DEFAULT_TEXT_LANGUAGE = "en"

# Type 2 tag memory TLV blocks
TLV_NULL = 0x00
TLV_LOCK_CONTROL = 0x01
TLV_MEMORY_CONTROL = 0x02
TLV_NDEF_MESSAGE = 0x03
TLV_PROPRIETARY = 0xFD
TLV_TERMINATOR = 0xFE
TLV_LONG_LENGTH = 0xFF

# NTAG2xx layout
NTAG_PAGE_SIZE = 4
NTAG_USER_START_PAGE = 4
NTAG_DEFAULT_MAX_PAGES = 135  # NTAG215 user memory

# Scan timing defaults (seconds)
DEFAULT_MANUAL_READ_TIMEOUT = 5.0
DEFAULT_POLL_READ_TIMEOUT = 2.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_SUCCESS_COOLDOWN = 1.5
DEFAULT_PROCESSING_COOLDOWN = 1.5
DEFAULT_POLL_INTERVAL = 0.3
DEFAULT_CANCEL_GRACE = 0.5
DEFAULT_MAX_CONSECUTIVE_FAILURES = 10
