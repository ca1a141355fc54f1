"""Store locations and great-circle distance helpers.

Coordinates come from the caller; nothing here talks to a positioning
service.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import aiofiles

from tap2eat.core.logging_utils import get_module_logger

logger = get_module_logger("Stores")

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 10.0


@dataclass(frozen=True, slots=True)
class UserLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class StoreLocation:
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    distance_km: Optional[float] = None
    rating: Optional[float] = None
    phone: Optional[str] = None
    opening_hours: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreLocation":
        store_id = data.get("id") or data.get("$id") or data.get("name")
        try:
            latitude = float(data["latitude"])
            longitude = float(data["longitude"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Store {store_id!r} has invalid coordinates") from exc
        if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
            raise ValueError(f"Store {store_id!r} coordinates out of range")

        rating = data.get("rating")
        return cls(
            id=str(store_id),
            name=str(data.get("name", "")),
            address=str(data.get("address", "")),
            latitude=latitude,
            longitude=longitude,
            rating=float(rating) if rating is not None else None,
            phone=data.get("phone"),
            opening_hours=data.get("opening_hours") or data.get("openingHours"),
        )


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres, rounded to 2 decimal places."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


def _with_distance(stores: Iterable[StoreLocation], user: UserLocation) -> List[StoreLocation]:
    return [
        replace(
            store,
            distance_km=calculate_distance(user.latitude, user.longitude, store.latitude, store.longitude),
        )
        for store in stores
    ]


def sort_stores_by_distance(stores: Iterable[StoreLocation], user: UserLocation) -> List[StoreLocation]:
    """Copies of ``stores`` with ``distance_km`` set, nearest first."""
    return sorted(_with_distance(stores, user), key=lambda store: store.distance_km or 0.0)


def filter_stores_by_radius(
    stores: Iterable[StoreLocation],
    user: UserLocation,
    radius_km: float = DEFAULT_RADIUS_KM,
) -> List[StoreLocation]:
    """Stores within ``radius_km`` of ``user``, nearest first."""
    nearby = [store for store in _with_distance(stores, user) if (store.distance_km or 0.0) <= radius_km]
    return sorted(nearby, key=lambda store: store.distance_km or 0.0)


async def load_stores(path: Path) -> List[StoreLocation]:
    path = Path(path)
    async with aiofiles.open(path, "r", encoding="utf-8") as handle:
        content = await handle.read()
    data = json.loads(content)
    if isinstance(data, dict):
        data = data.get("stores", [])
    if not isinstance(data, list):
        raise ValueError(f"Store file {path} must hold a list of stores")
    stores = [StoreLocation.from_dict(entry) for entry in data]
    logger.info("Loaded %d stores from %s", len(stores), path)
    return stores


__all__ = [
    "DEFAULT_RADIUS_KM",
    "EARTH_RADIUS_KM",
    "StoreLocation",
    "UserLocation",
    "calculate_distance",
    "filter_stores_by_radius",
    "load_stores",
    "sort_stores_by_distance",
]
