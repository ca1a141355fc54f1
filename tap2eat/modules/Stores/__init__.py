"""Store locations and distance helpers."""

from .location import (
    EARTH_RADIUS_KM,
    StoreLocation,
    UserLocation,
    calculate_distance,
    filter_stores_by_radius,
    load_stores,
    sort_stores_by_distance,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "StoreLocation",
    "UserLocation",
    "calculate_distance",
    "filter_stores_by_radius",
    "load_stores",
    "sort_stores_by_distance",
]
