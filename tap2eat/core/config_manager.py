"""Plain-text ``key = value`` config files.

Packaged config files may live on a read-only install. Writes that hit a
read-only file land in a per-user override file instead, and reads merge
that override on top of the packaged values.
"""

from __future__ import annotations

import asyncio
import errno
import hashlib
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import aiofiles

from .logging_utils import get_module_logger
from .paths import PACKAGE_ROOT, user_config_overrides_dir

logger = get_module_logger("ConfigManager")

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9._-]+")


def format_value(value: Any) -> str:
    """Render a value the way it is stored on disk (booleans lowercase)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_config_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Collect ``key = value`` pairs, skipping comments and malformed lines."""
    parsed: Dict[str, str] = {}
    for raw in lines:
        text = raw.strip()
        if not text or text[0] == "#" or "=" not in text:
            continue
        key, _, value = text.partition("=")
        value = value.split("#", 1)[0].strip()
        parsed[key.strip()] = _strip_quotes(value)
    return parsed


def merge_updates(lines: List[str], updates: Dict[str, Any]) -> List[str]:
    """Rewrite matching assignments in place and append keys not yet present.

    Comments, ordering and indentation of untouched lines are preserved.
    """
    pending = dict(updates)
    merged: List[str] = []
    for line in lines:
        text = line.strip()
        key = text.partition("=")[0].strip() if "=" in text and not text.startswith("#") else None
        if key is not None and key in pending:
            indent = line[: len(line) - len(line.lstrip())]
            merged.append(f"{indent}{key} = {format_value(pending.pop(key))}\n")
        else:
            merged.append(line)

    if merged and not merged[-1].endswith("\n"):
        merged[-1] += "\n"
    for key, value in pending.items():
        logger.debug("Appending new config key %s", key)
        merged.append(f"{key} = {format_value(value)}\n")
    return merged


def _is_read_only(exc: OSError) -> bool:
    return isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EROFS)


class ConfigManager:
    """Reads and writes config files, with per-user overrides."""

    def __init__(self, overrides_dir: Optional[Path] = None):
        self.lock = asyncio.Lock()
        self.overrides_dir = Path(overrides_dir) if overrides_dir else user_config_overrides_dir()
        self._package_root = PACKAGE_ROOT.resolve()

    def resolve_override_path(self, config_path: Path) -> Path:
        """Where the override for ``config_path`` lives.

        Packaged files mirror their location under the package root. Other
        files go under ``external/`` with a short hash of their full path.
        """
        config_path = Path(config_path)
        try:
            relative = config_path.resolve().relative_to(self._package_root)
        except ValueError:
            digest = hashlib.sha1(str(config_path).encode("utf-8")).hexdigest()[:10]
            stem = _UNSAFE_NAME.sub("_", config_path.stem or "config")
            relative = Path("external") / f"{stem}_{digest}{config_path.suffix or '.txt'}"
        return self.overrides_dir / relative

    # ------------------------------------------------------------------
    # Overrides

    def _read_override(self, config_path: Path) -> Dict[str, str]:
        override = self.resolve_override_path(config_path)
        try:
            with open(override, "r", encoding="utf-8") as fh:
                return parse_config_lines(fh)
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("Could not read config override %s: %s", override, exc)
            return {}

    def _store_override(self, config_path: Path, updates: Dict[str, Any]) -> bool:
        override = self.resolve_override_path(config_path)
        values = self._read_override(config_path)
        values.update({key: format_value(value) for key, value in updates.items()})
        try:
            override.parent.mkdir(parents=True, exist_ok=True)
            with open(override, "w", encoding="utf-8") as fh:
                fh.writelines(f"{key} = {values[key]}\n" for key in sorted(values))
        except OSError as exc:
            logger.error("Could not write config override %s: %s", override, exc)
            return False
        logger.info("Saved settings for %s to override %s", config_path.name, override)
        return True

    def _drop_override(self, config_path: Path) -> None:
        try:
            self.resolve_override_path(config_path).unlink(missing_ok=True)
        except OSError as exc:
            logger.debug("Could not remove config override for %s: %s", config_path, exc)

    def _write_failed(self, config_path: Path, updates: Dict[str, Any], exc: OSError) -> bool:
        if _is_read_only(exc):
            logger.warning("%s is read-only (%s), using an override file", config_path, exc)
            return self._store_override(config_path, updates)
        logger.error("Could not write config %s: %s", config_path, exc)
        return False

    # ------------------------------------------------------------------
    # Reading

    def read_config(self, config_path: Path) -> Dict[str, str]:
        config_path = Path(config_path)
        values: Dict[str, str] = {}
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                values = parse_config_lines(fh)
        except FileNotFoundError:
            logger.debug("No config file at %s", config_path)
        except OSError as exc:
            logger.error("Could not read config %s: %s", config_path, exc)
        values.update(self._read_override(config_path))
        return values

    async def read_config_async(self, config_path: Path) -> Dict[str, str]:
        config_path = Path(config_path)
        values: Dict[str, str] = {}
        try:
            async with aiofiles.open(config_path, "r", encoding="utf-8") as fh:
                values = parse_config_lines(await fh.readlines())
        except FileNotFoundError:
            logger.debug("No config file at %s", config_path)
        except OSError as exc:
            logger.error("Could not read config %s: %s", config_path, exc)
        values.update(await asyncio.to_thread(self._read_override, config_path))
        return values

    # ------------------------------------------------------------------
    # Writing

    def write_config(self, config_path: Path, updates: Dict[str, Any]) -> bool:
        """Apply ``updates`` to an existing config file. Returns success."""
        config_path = Path(config_path)
        if not config_path.exists():
            logger.error("Config file not found: %s", config_path)
            return False
        try:
            with open(config_path, "r", encoding="utf-8") as fh:
                lines = fh.readlines()
            with open(config_path, "w", encoding="utf-8") as fh:
                fh.writelines(merge_updates(lines, updates))
        except OSError as exc:
            return self._write_failed(config_path, updates, exc)
        self._drop_override(config_path)
        return True

    async def write_config_async(self, config_path: Path, updates: Dict[str, Any]) -> bool:
        config_path = Path(config_path)
        if not await asyncio.to_thread(config_path.exists):
            logger.error("Config file not found: %s", config_path)
            return False
        async with self.lock:
            try:
                async with aiofiles.open(config_path, "r", encoding="utf-8") as fh:
                    lines = await fh.readlines()
                async with aiofiles.open(config_path, "w", encoding="utf-8") as fh:
                    await fh.writelines(merge_updates(lines, updates))
            except OSError as exc:
                return await asyncio.to_thread(self._write_failed, config_path, updates, exc)
            await asyncio.to_thread(self._drop_override, config_path)
        return True

    # ------------------------------------------------------------------
    # Typed accessors

    def get_bool(self, config: Dict[str, str], key: str, default: bool = False) -> bool:
        raw = config.get(key)
        return default if raw is None else raw.strip().lower() in _TRUE_WORDS

    def get_int(self, config: Dict[str, str], key: str, default: int = 0) -> int:
        return self._coerce(config, key, int, default)

    def get_float(self, config: Dict[str, str], key: str, default: float = 0.0) -> float:
        return self._coerce(config, key, float, default)

    def get_str(self, config: Dict[str, str], key: str, default: str = "") -> str:
        return config.get(key, default)

    @staticmethod
    def _coerce(config: Dict[str, str], key: str, kind: type, default: Any) -> Any:
        raw = config.get(key)
        if raw is None:
            return default
        try:
            return kind(raw)
        except ValueError:
            logger.warning("Config %s=%r is not a valid %s; using %r", key, raw, kind.__name__, default)
            return default


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Process-wide manager, created on first use."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


__all__ = [
    "ConfigManager",
    "format_value",
    "get_config_manager",
    "merge_updates",
    "parse_config_lines",
]
