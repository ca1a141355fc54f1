"""Command line entry point: read, scan and write menu tags, list nearby stores."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Optional

from tap2eat.app.quick_add import QuickAddSession, build_session
from tap2eat.core.logging_utils import get_module_logger
from tap2eat.core.paths import NFC_CONFIG_PATH
from tap2eat.modules.base.preferences import ModulePreferences, parse_assignments
from tap2eat.modules.NFC.config import NFCConfig
from tap2eat.modules.NFC.nfc_core.adapters import ADAPTERS, SimulatedNfcAdapter
from tap2eat.modules.NFC.nfc_core.payload import TagPayload
from tap2eat.modules.NFC.nfc_core.tag_types import TagRecord
from tap2eat.modules.Stores import UserLocation, filter_stores_by_radius, load_stores

from .common import (
    add_common_cli_arguments,
    install_signal_handlers,
    positive_float,
    setup_cli_logging,
)

logger = get_module_logger("CLI")

BLANK_TAG_UID = "04:a2:6b:1a:7c:5e:80"


def build_parser(config: NFCConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tap2eat",
        description="tap2eat - NFC quick add for menu tags",
    )
    add_common_cli_arguments(
        parser,
        default_log_level=config.log_level,
        default_console_output=config.console_output,
        adapters=sorted(ADAPTERS),
    )

    commands = parser.add_subparsers(dest="command", required=True)

    read = commands.add_parser("read", help="Read a single tag")
    read.add_argument("--timeout", type=positive_float, default=None, help="Seconds to wait for a tag")

    scan = commands.add_parser("scan", help="Scan continuously and add tapped items to a cart")
    scan.add_argument(
        "--duration",
        type=positive_float,
        default=None,
        help="Stop after this many seconds (default: until interrupted)",
    )

    write = commands.add_parser("write", help="Write a menu item onto a tag")
    write.add_argument("--item-id", required=True, help="Menu item id")
    write.add_argument("--name", default="", help="Item name (informational)")
    write.add_argument("--price", type=float, default=0.0, help="Item price (informational)")
    write.add_argument("--store-id", default=None, help="Store id")

    stores = commands.add_parser("stores", help="List stores near a location")
    stores.add_argument("--lat", type=float, required=True, help="Latitude")
    stores.add_argument("--lon", type=float, required=True, help="Longitude")
    stores.add_argument("--radius", type=positive_float, default=10.0, help="Radius in km (default: 10)")
    stores.add_argument("--stores-file", type=Path, default=None, help="Stores JSON file (overrides config)")

    config_cmd = commands.add_parser("config", help="Show or change NFC settings")
    config_actions = config_cmd.add_subparsers(dest="config_action", required=True)
    config_actions.add_parser("show", help="Print the effective settings")
    config_set = config_actions.add_parser("set", help="Persist KEY=VALUE settings")
    config_set.add_argument("assignments", nargs="+", metavar="KEY=VALUE")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments with config file defaults."""
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", type=Path, default=None)
    known, _ = pre_parser.parse_known_args(argv)

    config_path = known.config or NFC_CONFIG_PATH
    preferences = ModulePreferences(config_path)
    config = NFCConfig.from_preferences(preferences)

    args = build_parser(config).parse_args(argv)
    args.config_path = config_path
    args.preferences = preferences
    return args


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_cli_logging(args)

    config = NFCConfig.from_preferences(args.preferences, args)
    logger.debug("Effective config: %s", config.to_dict())

    if args.command == "config":
        return await _run_config(args, config)
    if args.command == "stores":
        return await _run_stores(args, config)

    if args.simulate_tags and config.adapter != SimulatedNfcAdapter.name:
        logger.warning("--simulate-tag only applies to the simulated adapter; ignoring")

    try:
        config.validate()
    except ValueError as exc:
        logger.error("Invalid config in %s: %s", args.config_path, exc)
        return 2

    session = await build_session(config)
    try:
        _present_simulated_tags(session, args)
        if args.command == "read":
            return await _run_read(session, args)
        if args.command == "scan":
            return await _run_scan(session, args)
        if args.command == "write":
            return await _run_write(session, args)
    finally:
        await session.close()
    return 2


def _present_simulated_tags(session: QuickAddSession, args: argparse.Namespace) -> None:
    adapter = session.controller.adapter
    if not isinstance(adapter, SimulatedNfcAdapter):
        return
    for text in args.simulate_tags:
        adapter.present_tag(text)
    if args.command == "write" and not args.simulate_tags:
        adapter.present_tag(TagRecord(uid=BLANK_TAG_UID))


async def _run_read(session: QuickAddSession, args: argparse.Namespace) -> int:
    payload = await session.controller.read_tag(args.timeout)
    if payload is None:
        print("No menu tag read")
        return 1
    print(payload.to_json())
    return 0


async def _run_scan(session: QuickAddSession, args: argparse.Namespace) -> int:
    stop_event = asyncio.Event()
    install_signal_handlers(stop_event.set)

    handle = await session.start_quick_add()
    if handle.is_noop:
        print("NFC scanning is not available")
        return 1

    print("Scanning for menu tags... (Ctrl+C to stop)")
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=args.duration)
    except asyncio.TimeoutError:
        pass
    handle.stop()
    await handle.wait_closed(timeout=session.controller.timings.poll_read_timeout)

    cart = session.cart
    for item in cart.items:
        print(f"{item.quantity} x {item.name:<24} {item.subtotal:>8.2f}")
    print(f"Total items: {cart.total_items}  Total: {cart.total_price:.2f}")
    return 0


async def _run_write(session: QuickAddSession, args: argparse.Namespace) -> int:
    try:
        payload = TagPayload(
            menu_item_id=args.item_id,
            name=args.name,
            price=args.price,
            store_id=args.store_id,
        )
    except ValueError as exc:
        print(f"Invalid payload: {exc}")
        return 2

    if not await session.controller.write_tag(payload):
        print("Write failed")
        return 1
    print(f"Wrote {payload.to_json()}")
    return 0


async def _run_stores(args: argparse.Namespace, config: NFCConfig) -> int:
    path = args.stores_file or config.stores_file
    try:
        stores = await load_stores(path)
    except (OSError, ValueError) as exc:
        logger.error("Could not load stores from %s: %s", path, exc)
        return 1

    nearby = filter_stores_by_radius(stores, UserLocation(args.lat, args.lon), args.radius)
    if not nearby:
        print(f"No stores within {args.radius:g} km")
        return 0
    for store in nearby:
        print(f"{store.distance_km:>7.2f} km  {store.name}  ({store.address})")
    return 0


async def _run_config(args: argparse.Namespace, config: NFCConfig) -> int:
    if args.config_action == "show":
        print(json.dumps(config.to_dict(), indent=2, default=str))
        return 0

    try:
        updates = parse_assignments(args.assignments)
    except ValueError as exc:
        print(str(exc))
        return 2

    unknown = sorted(set(updates) - set(NFCConfig.__dataclass_fields__))
    if unknown:
        print(f"Unknown config keys: {', '.join(unknown)}")
        return 2

    merged = args.preferences.snapshot()
    merged.update(updates)
    try:
        NFCConfig.from_preferences(merged).validate()
    except ValueError as exc:
        print(f"Invalid config: {exc}")
        return 2

    if not await args.preferences.write_async(updates):
        print(f"Could not write {args.config_path}")
        return 1
    print(f"Updated {', '.join(sorted(updates))} in {args.config_path}")
    return 0


__all__ = ["build_parser", "main", "parse_args"]
