"""Typed reads from preference sources, falling back to a default on bad input."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional, Protocol, TypeVar

T = TypeVar("T")

TRUE_WORDS = frozenset({"true", "1", "yes", "on"})


class PreferenceSource(Protocol):
    """Anything with a dict-like ``get`` (ModulePreferences, plain dicts)."""

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        ...


def _typed(prefs: PreferenceSource, key: str, default: T, convert: Callable[[Any], T]) -> T:
    raw = prefs.get(key)
    if raw is None:
        return default
    try:
        return convert(raw)
    except (TypeError, ValueError):
        return default


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in TRUE_WORDS


def get_pref_str(prefs: PreferenceSource, key: str, default: str) -> str:
    return _typed(prefs, key, default, str)


def get_pref_int(prefs: PreferenceSource, key: str, default: int) -> int:
    return _typed(prefs, key, default, int)


def get_pref_float(prefs: PreferenceSource, key: str, default: float) -> float:
    return _typed(prefs, key, default, float)


def get_pref_bool(prefs: PreferenceSource, key: str, default: bool) -> bool:
    return _typed(prefs, key, default, _to_bool)


def get_pref_path(prefs: PreferenceSource, key: str, default: Path) -> Path:
    text = get_pref_str(prefs, key, "").strip()
    return Path(text) if text else default


__all__ = [
    "PreferenceSource",
    "TRUE_WORDS",
    "get_pref_bool",
    "get_pref_float",
    "get_pref_int",
    "get_pref_path",
    "get_pref_str",
]
