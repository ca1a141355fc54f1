"""Menu item model and the lookup contract the NFC controller consumes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple


class MenuLookupError(RuntimeError):
    """The menu service could not answer."""


class MenuItemNotFound(MenuLookupError):
    """No menu item exists for the requested id."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Menu item not found: {item_id}")
        self.item_id = item_id


@dataclass(frozen=True, slots=True)
class MenuItem:
    id: str
    name: str
    price: float
    description: str = ""
    image_url: str = ""
    store_id: Optional[str] = None
    categories: Tuple[str, ...] = field(default_factory=tuple)
    calories: Optional[int] = None
    protein: Optional[int] = None
    rating: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenuItem":
        """Build from a catalog entry or a backend document.

        Accepts both ``id`` and the document-style ``$id``, and
        ``store_id``/``storeId``.
        """
        item_id = data.get("id") or data.get("$id")
        if not isinstance(item_id, str) or not item_id:
            raise ValueError("Menu item is missing an id")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Menu item {item_id} is missing a name")
        price = data.get("price", 0.0)
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValueError(f"Menu item {item_id} has a non-numeric price")

        categories = data.get("categories") or ()
        if isinstance(categories, str):
            categories = (categories,)

        return cls(
            id=item_id,
            name=name,
            price=float(price),
            description=str(data.get("description") or ""),
            image_url=str(data.get("image_url") or ""),
            store_id=data.get("store_id") or data.get("storeId"),
            categories=tuple(str(category) for category in categories),
            calories=_optional_int(data.get("calories")),
            protein=_optional_int(data.get("protein")),
            rating=_optional_float(data.get("rating")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "image_url": self.image_url,
            "store_id": self.store_id,
            "categories": list(self.categories),
            "calories": self.calories,
            "protein": self.protein,
            "rating": self.rating,
        }


class MenuLookupService(Protocol):
    async def get_by_id(self, item_id: str) -> MenuItem:
        """Resolve ``item_id``; raise MenuItemNotFound on a miss."""
        ...


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = ["MenuItem", "MenuItemNotFound", "MenuLookupError", "MenuLookupService"]
