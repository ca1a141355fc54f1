from __future__ import annotations

import argparse
import asyncio
import signal
from pathlib import Path
from typing import Callable, Optional

from tap2eat.core.logging_config import LOG_LEVELS, configure_logging
from tap2eat.core.logging_utils import get_module_logger

logger = get_module_logger("CLI")


def add_common_cli_arguments(
    parser: argparse.ArgumentParser,
    *,
    default_log_level: str = "info",
    default_console_output: bool = True,
    adapters: Optional[list[str]] = None,
) -> None:
    parser.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS.keys()),
        default=default_log_level,
        help="Logging verbosity",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional path to write logs (rotated)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="NFC config file (default: packaged config.txt)",
    )

    console_group = parser.add_mutually_exclusive_group()
    console_group.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=default_console_output,
        help="Log to the console",
    )
    console_group.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Do not log to the console",
    )

    parser.add_argument(
        "--adapter",
        choices=adapters,
        default=None,
        help="NFC reader adapter (overrides config)",
    )

    parser.add_argument(
        "--menu",
        type=Path,
        default=None,
        help="Menu catalog JSON file (overrides config)",
    )

    parser.add_argument(
        "--simulate-tag",
        dest="simulate_tags",
        action="append",
        default=[],
        metavar="TEXT",
        help="Present a tag holding TEXT to the simulated reader (repeatable)",
    )


def _positive_number(value: str, typ: type, name: str):
    """Generic positive number validator for argparse."""
    try:
        parsed = typ(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Value must be a {name}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("Value must be positive")
    return parsed


def positive_int(value: str) -> int:
    return _positive_number(value, int, "integer")


def positive_float(value: str) -> float:
    return _positive_number(value, float, "number")


def setup_cli_logging(args: argparse.Namespace) -> None:
    configure_logging(
        args.log_level,
        force=True,
        console=args.console_output,
        log_file=args.log_file,
        suppressed_loggers=("aiohttp.access",),
    )
    if args.log_file:
        logger.info("Logs will be written to %s", args.log_file)


def install_signal_handlers(callback: Callable[[], None]) -> None:
    """Route SIGINT/SIGTERM to ``callback`` on the running loop."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handler for %s not supported on this platform", sig.name)


__all__ = [
    "add_common_cli_arguments",
    "install_signal_handlers",
    "positive_float",
    "positive_int",
    "setup_cli_logging",
]
