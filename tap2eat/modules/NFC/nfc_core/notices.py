"""User-facing notices raised by the NFC module.

The controller never talks to a UI directly. It hands ``Notice`` objects to
a ``Notifier``; the default one writes them to the log, a front end can
plug in something that shows a dialog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Tuple

from tap2eat.core.logging_utils import LoggerLike, ensure_structured_logger


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class NoticeAction:
    label: str
    handler: Optional[Callable[[], Any]] = None


@dataclass(frozen=True, slots=True)
class Notice:
    title: str
    message: str
    level: NoticeLevel = NoticeLevel.INFO
    actions: Tuple[NoticeAction, ...] = ()

    def action(self, label: str) -> Optional[NoticeAction]:
        for candidate in self.actions:
            if candidate.label == label:
                return candidate
        return None


class Notifier(Protocol):
    def notify(self, notice: Notice) -> None:
        ...


_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Notifier that records notices in the log."""

    def __init__(self, logger: LoggerLike = None) -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="Notices")

    def notify(self, notice: Notice) -> None:
        labels = ", ".join(action.label for action in notice.actions)
        if labels:
            self.logger.log(_LEVELS[notice.level], "%s: %s [%s]", notice.title, notice.message, labels)
        else:
            self.logger.log(_LEVELS[notice.level], "%s: %s", notice.title, notice.message)


# ---------------------------------------------------------------------------
# Notice factories
# ---------------------------------------------------------------------------


def not_supported() -> Notice:
    return Notice("NFC Not Supported", "Your device does not support NFC", NoticeLevel.WARNING)


def unavailable() -> Notice:
    return Notice(
        "NFC Unavailable",
        "NFC requires a build with NFC support. It is not available in this environment.",
        NoticeLevel.WARNING,
    )


def invalid_tag() -> Notice:
    return Notice("Invalid NFC Tag", "This tag does not contain valid menu data", NoticeLevel.ERROR)


def read_error() -> Notice:
    return Notice("NFC Error", "Failed to read NFC tag. Please try again.", NoticeLevel.ERROR)


def item_not_found() -> Notice:
    return Notice("Item Not Found", "The menu item from this NFC tag could not be found", NoticeLevel.ERROR)


def scan_failed() -> Notice:
    return Notice("Scan Failed", "Failed to process the NFC tag. Please try again.", NoticeLevel.ERROR)


def write_success() -> Notice:
    return Notice("Success", "Menu item written to NFC tag successfully!")


def write_error() -> Notice:
    return Notice("Write Error", "Failed to write to NFC tag. Please try again.", NoticeLevel.ERROR)


def no_tag_found() -> Notice:
    return Notice("No Tag Found", "Hold an NFC tag near the reader and try again.", NoticeLevel.WARNING)


def enable_nfc() -> Notice:
    return Notice("Enable NFC", "Please enable NFC in your device settings", NoticeLevel.INFO)


def nfc_disabled(open_settings: Optional[Callable[[], Any]] = None) -> Notice:
    return Notice(
        "NFC Disabled",
        "Please enable NFC in your device settings",
        NoticeLevel.WARNING,
        actions=(NoticeAction("Cancel"), NoticeAction("Open Settings", open_settings)),
    )


def item_added(name: str, view_cart: Optional[Callable[[], Any]] = None) -> Notice:
    return Notice(
        "Item Added!",
        f"{name} has been added to your cart",
        actions=(NoticeAction("OK"), NoticeAction("View Cart", view_cart)),
    )


__all__ = [
    "LoggingNotifier",
    "Notice",
    "NoticeAction",
    "NoticeLevel",
    "Notifier",
    "enable_nfc",
    "invalid_tag",
    "item_added",
    "item_not_found",
    "nfc_disabled",
    "no_tag_found",
    "not_supported",
    "read_error",
    "scan_failed",
    "unavailable",
    "write_error",
    "write_success",
]
