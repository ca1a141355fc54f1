"""Component-tagged loggers.

Every tap2eat logger lives under the ``tap2eat`` namespace and prefixes its
messages with ``[Component]`` so interleaved controller, adapter and CLI
output stays readable in one stream.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

MODULE_LOGGER_NAMESPACE = "tap2eat"
DEFAULT_COMPONENT = "Core"


def _qualified(name: Optional[str]) -> str:
    if not name:
        return MODULE_LOGGER_NAMESPACE
    if name == MODULE_LOGGER_NAMESPACE or name.startswith(MODULE_LOGGER_NAMESPACE + "."):
        return name
    return f"{MODULE_LOGGER_NAMESPACE}.{name}"


def _component_for(logger_name: str) -> str:
    head, _, tail = logger_name.partition(".")
    if head == MODULE_LOGGER_NAMESPACE:
        return tail or DEFAULT_COMPONENT
    return logger_name or DEFAULT_COMPONENT


class StructuredLogger(logging.LoggerAdapter):
    """LoggerAdapter that tags every message with its component name."""

    def __init__(self, logger: logging.Logger, component: Optional[str] = None) -> None:
        super().__init__(logger, {})
        self.component = component or _component_for(logger.name)

    def process(self, msg, kwargs):
        tag = f"[{self.component}]"
        text = str(msg)
        if not text.startswith(tag):
            text = f"{tag} {text}"
        return text, kwargs

    def getChild(self, suffix: str) -> "StructuredLogger":
        return StructuredLogger(self.logger.getChild(suffix), component=f"{self.component}.{suffix}")

    def __repr__(self) -> str:
        return f"<StructuredLogger {self.logger.name} [{self.component}]>"


LoggerLike = Union[StructuredLogger, logging.Logger, logging.LoggerAdapter, None]


def ensure_structured_logger(
    logger: LoggerLike,
    *,
    component: Optional[str] = None,
    fallback_name: Optional[str] = None,
) -> StructuredLogger:
    """Wrap ``logger`` in a StructuredLogger, or make one from ``fallback_name``."""
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.LoggerAdapter):
        logger = logger.logger
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger, component=component)
    return get_module_logger(fallback_name)


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    """Structured logger for ``name`` inside the tap2eat namespace."""
    return StructuredLogger(logging.getLogger(_qualified(name)))


__all__ = [
    "LoggerLike",
    "StructuredLogger",
    "ensure_structured_logger",
    "get_module_logger",
]
