"""Cart state for items added by tap or by hand."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List

from tap2eat.core.logging_utils import get_module_logger
from tap2eat.modules.Menu.models import MenuItem

logger = get_module_logger("CartStore")


@dataclass(frozen=True, slots=True)
class CartItem:
    id: str
    name: str
    price: float
    image_url: str = ""
    quantity: int = 1

    @classmethod
    def from_menu_item(cls, item: MenuItem, quantity: int = 1) -> "CartItem":
        return cls(id=item.id, name=item.name, price=item.price, image_url=item.image_url, quantity=quantity)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class CartStore:
    """Ordered cart keyed by menu item id."""

    def __init__(self) -> None:
        self._items: Dict[str, CartItem] = {}

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self._items.values())

    @property
    def total_price(self) -> float:
        return round(sum(item.subtotal for item in self._items.values()), 2)

    def get(self, item_id: str) -> CartItem | None:
        return self._items.get(item_id)

    def add_item(self, item: CartItem) -> CartItem:
        """Add ``item``; an item already in the cart has its quantity raised."""
        if item.quantity < 1:
            raise ValueError("quantity must be at least 1")
        existing = self._items.get(item.id)
        if existing is None:
            self._items[item.id] = item
        else:
            self._items[item.id] = replace(existing, quantity=existing.quantity + item.quantity)
        logger.debug("Cart: %s x%d", item.id, self._items[item.id].quantity)
        return self._items[item.id]

    def remove_item(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    def increase_quantity(self, item_id: str) -> CartItem | None:
        existing = self._items.get(item_id)
        if existing is None:
            return None
        self._items[item_id] = replace(existing, quantity=existing.quantity + 1)
        return self._items[item_id]

    def decrease_quantity(self, item_id: str) -> CartItem | None:
        """Lower the quantity by one; the item leaves the cart at zero."""
        existing = self._items.get(item_id)
        if existing is None:
            return None
        if existing.quantity <= 1:
            del self._items[item_id]
            return None
        self._items[item_id] = replace(existing, quantity=existing.quantity - 1)
        return self._items[item_id]

    def clear(self) -> None:
        self._items.clear()


__all__ = ["CartItem", "CartStore"]
