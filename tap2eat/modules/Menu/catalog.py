"""In-memory menu catalog backed by a JSON file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import aiofiles

from tap2eat.core.logging_utils import get_module_logger

from .models import MenuItem, MenuItemNotFound

logger = get_module_logger("MenuCatalog")


class MenuCatalog:
    """Menu lookup service over a fixed set of items."""

    def __init__(self, items: Iterable[MenuItem] = ()) -> None:
        self._items: Dict[str, MenuItem] = {}
        for item in items:
            if item.id in self._items:
                logger.warning("Duplicate menu item id %s; keeping the last entry", item.id)
            self._items[item.id] = item

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    async def get_by_id(self, item_id: str) -> MenuItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise MenuItemNotFound(item_id) from None

    def list_items(self, category: Optional[str] = None, query: Optional[str] = None) -> List[MenuItem]:
        """Items filtered by category and a case-insensitive name search."""
        items = list(self._items.values())
        if category:
            wanted = category.lower()
            items = [item for item in items if any(c.lower() == wanted for c in item.categories)]
        if query:
            needle = query.strip().lower()
            items = [item for item in items if needle in item.name.lower()]
        return items

    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for item in self._items.values():
            for category in item.categories:
                seen.setdefault(category, None)
        return list(seen)


def parse_menu(data: object) -> List[MenuItem]:
    """Menu items from decoded JSON: a list, or ``{"items": [...]}``."""
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValueError("Menu data must be a list of items")

    items: List[MenuItem] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Menu entry {index} is not an object")
        items.append(MenuItem.from_dict(entry))
    return items


async def load_menu_catalog(path: Path) -> MenuCatalog:
    """Read a menu JSON file into a MenuCatalog."""
    path = Path(path)
    async with aiofiles.open(path, "r", encoding="utf-8") as handle:
        content = await handle.read()
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Menu file {path} is not valid JSON: {exc}") from exc
    catalog = MenuCatalog(parse_menu(data))
    logger.info("Loaded %d menu items from %s", len(catalog), path)
    return catalog


__all__ = ["MenuCatalog", "load_menu_catalog", "parse_menu"]
