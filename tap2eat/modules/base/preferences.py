"""Cached, writable view of one module config file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from tap2eat.core.config_manager import ConfigManager, format_value, get_config_manager
from tap2eat.core.logging_utils import get_module_logger

from .typed_config import get_pref_bool

logger = get_module_logger("Preferences")


@dataclass(slots=True)
class PreferenceChange:
    """Keys (and their new values) written by one ``write_async`` call."""

    updated: Dict[str, Any]


class ModulePreferences:
    """Keeps a module's config values in memory and writes changes back.

    Values are the strings found on disk (overrides merged in). Use the
    ``typed_config`` helpers, or ``NFCConfig.from_preferences``, for typed
    access.
    """

    def __init__(
        self,
        config_path: Path,
        *,
        config_manager: Optional[ConfigManager] = None,
        on_change: Optional[Callable[[PreferenceChange], None]] = None,
        initial_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config_path = Path(config_path)
        self._manager = config_manager if config_manager is not None else get_config_manager()
        self._on_change = on_change
        if initial_data is None:
            self._values: Dict[str, Any] = self._manager.read_config(self.config_path)
        else:
            self._values = dict(initial_data)

    @classmethod
    async def load(
        cls,
        config_path: Path,
        *,
        config_manager: Optional[ConfigManager] = None,
    ) -> "ModulePreferences":
        manager = config_manager if config_manager is not None else get_config_manager()
        values = await manager.read_config_async(Path(config_path))
        return cls(config_path, config_manager=manager, initial_data=values)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._values.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return get_pref_bool(self._values, key, default)

    def reload(self) -> Dict[str, Any]:
        self._values = self._manager.read_config(self.config_path)
        return self.snapshot()

    async def write_async(self, updates: Dict[str, Any]) -> bool:
        """Persist ``updates``; the cache only changes if the write succeeded."""
        if not updates:
            return True
        if not await self._manager.write_config_async(self.config_path, updates):
            return False

        self._values.update({key: format_value(value) for key, value in updates.items()})
        if self._on_change is not None:
            try:
                self._on_change(PreferenceChange(updated=dict(updates)))
            except Exception:
                logger.exception("Preference change callback failed for %s", self.config_path.name)
        return True


def parse_assignments(pairs: Iterable[str]) -> Dict[str, str]:
    """Turn ``key=value`` strings (as given on the command line) into a dict.

    Only the first ``=`` splits, so values may contain ``=``. A repeated key
    keeps its last value.
    """
    updates: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got {pair!r}")
        key = key.strip()
        if not key:
            raise ValueError(f"Missing key in {pair!r}")
        if key in updates:
            logger.debug("Config key %s given more than once; last value wins", key)
        updates[key] = value.strip()
    return updates


__all__ = [
    "ModulePreferences",
    "PreferenceChange",
    "parse_assignments",
]
