"""Unit tests for module preferences and typed preference helpers."""

from pathlib import Path

import pytest

from tap2eat.modules.base.preferences import ModulePreferences, PreferenceChange, parse_assignments
from tap2eat.modules.base.typed_config import (
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "config.txt"
    path.write_text("adapter = simulated\ndevelopment_mode = false\npoll_interval_s = 0.3\n", encoding="utf-8")
    return path


class TestModulePreferences:

    def test_reads_file_on_construction(self, config_file, config_manager):
        prefs = ModulePreferences(config_file, config_manager=config_manager)

        assert prefs.config_path == config_file
        assert prefs.get("adapter") == "simulated"
        assert prefs.get("missing", "fallback") == "fallback"
        assert prefs.get_bool("development_mode", default=True) is False
        assert prefs.get_bool("missing", default=True) is True

    @pytest.mark.asyncio
    async def test_async_load(self, config_file, config_manager):
        prefs = await ModulePreferences.load(config_file, config_manager=config_manager)
        assert prefs.snapshot() == {
            "adapter": "simulated",
            "development_mode": "false",
            "poll_interval_s": "0.3",
        }

    @pytest.mark.asyncio
    async def test_write_updates_file_and_cache(self, config_file, config_manager):
        changes = []
        prefs = ModulePreferences(config_file, config_manager=config_manager, on_change=changes.append)

        assert await prefs.write_async({"development_mode": True, "adapter": "pn532"}) is True

        assert prefs.get("development_mode") == "true"
        assert prefs.get("adapter") == "pn532"
        assert changes == [PreferenceChange(updated={"development_mode": True, "adapter": "pn532"})]
        assert "adapter = pn532" in config_file.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_empty_write_is_noop(self, config_file, config_manager):
        prefs = ModulePreferences(config_file, config_manager=config_manager)
        assert await prefs.write_async({}) is True

    @pytest.mark.asyncio
    async def test_write_to_missing_file_fails(self, tmp_path, config_manager):
        prefs = ModulePreferences(tmp_path / "missing.txt", config_manager=config_manager)
        assert await prefs.write_async({"adapter": "pn532"}) is False
        assert prefs.get("adapter") is None

    def test_reload(self, config_file, config_manager):
        prefs = ModulePreferences(config_file, config_manager=config_manager)
        config_file.write_text("adapter = pn532\n", encoding="utf-8")
        assert prefs.reload() == {"adapter": "pn532"}

    def test_initial_data_skips_read(self, tmp_path, config_manager):
        prefs = ModulePreferences(tmp_path / "none.txt", config_manager=config_manager, initial_data={"a": "1"})
        assert prefs.snapshot() == {"a": "1"}


class TestParseAssignments:

    def test_pairs(self):
        assert parse_assignments(["adapter=pn532", " poll_interval_s = 0.2 ", "menu_catalog=a=b.json"]) == {
            "adapter": "pn532",
            "poll_interval_s": "0.2",
            "menu_catalog": "a=b.json",
        }

    def test_last_value_wins(self):
        assert parse_assignments(["adapter=pn532", "adapter=simulated"]) == {"adapter": "simulated"}

    @pytest.mark.parametrize("pair", ["adapter", "=pn532"])
    def test_invalid(self, pair):
        with pytest.raises(ValueError):
            parse_assignments([pair])


class TestTypedConfig:

    def test_helpers(self):
        prefs = {"s": "text", "i": "4", "f": "0.5", "b": "on", "p": "/tmp/x", "blank": " "}

        assert get_pref_str(prefs, "s", "d") == "text"
        assert get_pref_str(prefs, "missing", "d") == "d"
        assert get_pref_int(prefs, "i", 0) == 4
        assert get_pref_int(prefs, "s", 9) == 9
        assert get_pref_float(prefs, "f", 0.0) == 0.5
        assert get_pref_float(prefs, "s", 1.5) == 1.5
        assert get_pref_bool(prefs, "b", False) is True
        assert get_pref_bool({"b": False}, "b", True) is False
        assert get_pref_path(prefs, "p", Path("d")) == Path("/tmp/x")
        assert get_pref_path(prefs, "blank", Path("d")) == Path("d")
