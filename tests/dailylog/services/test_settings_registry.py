"""
Tests for the settings registry and trigger vocabulary.
"""

from __future__ import annotations

import pytest

from dailylog.config.vocabulary import DEFAULT_TRIGGERS, SettingKey
from dailylog.lib.exceptions import ValidationError
from dailylog.services.settings_registry import IDLE_MARKER, SettingsRegistry, check_setting_value


@pytest.fixture
def fresh(store):
    """Registry on an empty store, defaults not yet seeded."""
    return SettingsRegistry(store)


class TestGetSet:

    def test_missing_returns_default(self, fresh):
        """Test absent settings fall back to the default."""
        assert fresh.get_setting(SettingKey.PIN) is None
        assert fresh.get_setting(SettingKey.PIN, "fallback") == "fallback"

    def test_set_then_get(self, fresh):
        """Test a setting reads back after being set."""
        fresh.set_setting(SettingKey.LAST_QUICK, {"startedBy": "Me"})
        assert fresh.get_setting("lastQuick") == {"startedBy": "Me"}

    def test_stored_shape(self, fresh, store):
        """Test settings are stored as {key, value}."""
        fresh.set_setting(SettingKey.RECOVERY, "abc")
        assert store.get("settings", "recovery") == {"key": "recovery", "value": "abc"}

    def test_unknown_key_rejected(self, fresh):
        """Test unknown keys are refused."""
        with pytest.raises(ValidationError):
            fresh.get_setting("theme")
        with pytest.raises(ValidationError):
            fresh.set_setting("theme", "dark")

    def test_has_setting(self, fresh):
        """Test has_setting treats None as absent."""
        assert not fresh.has_setting(SettingKey.PIN)
        fresh.set_setting(SettingKey.PIN, {"salt": "s", "hash": "h"})
        assert fresh.has_setting(SettingKey.PIN)
        fresh.set_setting(SettingKey.PIN, None)
        assert not fresh.has_setting(SettingKey.PIN)

    @pytest.mark.parametrize("key, value", [
        (SettingKey.TRIGGERS, "Money"),
        (SettingKey.TRIGGERS, ["Money", 3]),
        (SettingKey.PIN, "1234"),
        (SettingKey.PIN, {"salt": "s"}),
        (SettingKey.RECOVERY, 42),
        (SettingKey.SILENT_CURRENT, "on"),
        (SettingKey.SILENT_CURRENT, {"active": True, "startTs": "soon"}),
        (SettingKey.SILENT_CURRENT, {"active": True, "startTs": None}),
        (SettingKey.SILENT_CURRENT, {"active": "yes", "startTs": 1}),
        (SettingKey.LAST_QUICK, ["Me"]),
    ])
    def test_malformed_value_rejected(self, fresh, store, key, value):
        """Test values of the wrong shape never reach the store."""
        with pytest.raises(ValidationError):
            fresh.set_setting(key, value)
        assert store.get_all("settings") == []

    @pytest.mark.parametrize("key, value", [
        (SettingKey.SILENT_CURRENT, {"active": True, "startTs": 1.5e12}),
        (SettingKey.SILENT_CURRENT, {"active": False, "startTs": None}),
        (SettingKey.PIN, {"salt": "s", "hash": "h"}),
        (SettingKey.TRIGGERS, []),
    ])
    def test_well_formed_value_accepted(self, key, value):
        """Test well-formed values pass the shape check."""
        check_setting_value(key, value)


class TestEnsureDefaults:

    def test_first_run_seeds(self, fresh):
        """Test the first run seeds triggers, recovery key and marker."""
        filled = fresh.ensure_defaults()
        assert filled == ["triggers", "recovery", "silentCurrent"]
        assert fresh.get_setting(SettingKey.TRIGGERS) == list(DEFAULT_TRIGGERS)
        assert len(fresh.get_setting(SettingKey.RECOVERY)) == 32
        assert fresh.get_setting(SettingKey.SILENT_CURRENT) == IDLE_MARKER

    def test_idempotent(self, fresh, store):
        """Test seeding twice changes nothing."""
        fresh.ensure_defaults()
        before = sorted(store.get_all("settings"), key=lambda r: r["key"])

        assert fresh.ensure_defaults() == []
        assert sorted(store.get_all("settings"), key=lambda r: r["key"]) == before

    def test_never_overwrites_pin_or_recovery(self, fresh):
        """Test seeding keeps an existing PIN and recovery key."""
        fresh.set_setting(SettingKey.PIN, {"salt": "s", "hash": "h"})
        fresh.set_setting(SettingKey.RECOVERY, "my-key")
        fresh.ensure_defaults()
        assert fresh.get_setting(SettingKey.PIN) == {"salt": "s", "hash": "h"}
        assert fresh.get_setting(SettingKey.RECOVERY) == "my-key"

    def test_keeps_open_silent_marker(self, fresh):
        """Test seeding keeps an open silent marker."""
        marker = {"active": True, "startTs": 123}
        fresh.set_setting(SettingKey.SILENT_CURRENT, marker)
        fresh.ensure_defaults()
        assert fresh.get_setting(SettingKey.SILENT_CURRENT) == marker

    def test_empty_trigger_list_is_kept(self, fresh):
        """Test an emptied trigger list is not re-seeded."""
        fresh.set_setting(SettingKey.TRIGGERS, [])
        fresh.ensure_defaults()
        assert fresh.get_triggers() == []

    def test_does_not_create_pin(self, fresh):
        """Test seeding never creates a PIN."""
        fresh.ensure_defaults()
        assert fresh.get_setting(SettingKey.PIN) is None


class TestTriggers:

    def test_defaults_when_unset(self, fresh):
        """Test the default triggers are returned when unset."""
        assert fresh.get_triggers() == list(DEFAULT_TRIGGERS)

    def test_add(self, settings):
        """Test adding a trigger strips whitespace."""
        triggers = settings.add_trigger("  Holidays ")
        assert triggers[-1] == "Holidays"
        assert settings.get_triggers() == triggers

    def test_add_blank(self, settings):
        """Test blank trigger names are refused."""
        with pytest.raises(ValidationError):
            settings.add_trigger("   ")

    def test_rename(self, settings):
        """Test renaming a trigger."""
        settings.rename_trigger(0, "Respect")
        assert settings.get_triggers()[0] == "Respect"

    def test_delete(self, settings):
        """Test deleting a trigger."""
        settings.delete_trigger(0)
        assert settings.get_triggers() == list(DEFAULT_TRIGGERS[1:])

    @pytest.mark.parametrize("index", [-1, 9, 100])
    def test_bad_index(self, settings, index):
        """Test out-of-range trigger positions are refused."""
        with pytest.raises(ValidationError):
            settings.delete_trigger(index)
        with pytest.raises(ValidationError):
            settings.rename_trigger(index, "x")
