"""Root logging setup shared by the CLI and tests."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 500 * 1024
LOG_BACKUP_COUNT = 2

LOG_LEVELS: dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_configured = False


def resolve_level(level: Union[int, str]) -> int:
    """Map a level name (any case) or number to a logging level."""
    if not isinstance(level, str):
        return int(level)
    try:
        return LOG_LEVELS[level.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown log level '{level}'. Choose from: {', '.join(sorted(LOG_LEVELS))}"
        ) from None


def _build_handlers(
    console: bool,
    log_file: Optional[Union[str, Path]],
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        )
    return handlers


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    force: bool = False,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = LOG_MAX_BYTES,
    backup_count: int = LOG_BACKUP_COUNT,
    suppressed_loggers: Iterable[str] = (),
) -> None:
    """Install handlers on the root logger.

    Only the first call (or one with ``force=True``) replaces handlers. Later
    calls just adjust the level. Loggers named in ``suppressed_loggers`` are
    raised to ERROR either way. With neither console nor file output the
    root logger still gets a stderr handler so errors are not lost.
    """
    global _configured
    numeric = resolve_level(level)
    root = logging.getLogger()

    if force or not _configured:
        for old in list(root.handlers):
            root.removeHandler(old)
            old.close()

        formatter = logging.Formatter(LOG_FORMAT, LOG_DATEFMT)
        handlers = _build_handlers(console, log_file, max_bytes, backup_count)
        if not handlers:
            handlers.append(logging.StreamHandler(sys.stderr))
        for handler in handlers:
            handler.setFormatter(formatter)
            handler.setLevel(numeric)
            root.addHandler(handler)
        _configured = True

    root.setLevel(numeric)
    for name in suppressed_loggers:
        logging.getLogger(name).setLevel(logging.ERROR)


__all__ = ["LOG_DATEFMT", "LOG_FORMAT", "LOG_LEVELS", "configure_logging", "resolve_level"]
