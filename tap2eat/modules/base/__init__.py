"""Shared utilities for tap2eat modules."""

from .preferences import ModulePreferences, PreferenceChange, parse_assignments
from .typed_config import (
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)

__all__ = [
    "ModulePreferences",
    "PreferenceChange",
    "parse_assignments",
    "get_pref_bool",
    "get_pref_float",
    "get_pref_int",
    "get_pref_path",
    "get_pref_str",
]
