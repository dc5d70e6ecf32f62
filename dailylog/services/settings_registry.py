"""
Settings registry for Daily Log.

Thin typed wrapper over the reserved "settings" collection of the object
store. Records are stored as {"key": <SettingKey>, "value": <any JSON>}.

ensure_defaults() is idempotent: it fills in genuinely missing keys and never
overwrites an existing PIN, recovery key, or trigger vocabulary.
"""

from __future__ import annotations

import logging
from typing import Any

from dailylog.config.vocabulary import DEFAULT_TRIGGERS, SETTINGS, SettingKey
from dailylog.lib.encryption import generate_recovery_key
from dailylog.lib.exceptions import ValidationError
from dailylog.services.object_store import ObjectStore

logger = logging.getLogger(__name__)

IDLE_MARKER: dict[str, Any] = {"active": False, "startTs": None}


def _as_key(key: str) -> SettingKey:
    try:
        return SettingKey(key)
    except ValueError:
        raise ValidationError(f"Unknown setting key: {key!r}") from None


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_setting_value(key: str, value: Any) -> None:
    """
    Check that a value has the shape its setting key expects.

    None is accepted for every key (the setting is then treated as missing).

    Raises:
        ValidationError: If the key is unknown or the value is malformed
    """
    key = _as_key(key)
    if value is None:
        return

    if key is SettingKey.TRIGGERS:
        if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
            raise ValidationError("'triggers' must be a list of strings")
    elif key is SettingKey.PIN:
        if not (
            isinstance(value, dict)
            and isinstance(value.get("salt"), str)
            and isinstance(value.get("hash"), str)
        ):
            raise ValidationError("'pin' must be {salt, hash}")
    elif key is SettingKey.RECOVERY:
        if not isinstance(value, str):
            raise ValidationError("'recovery' must be a string")
    elif key is SettingKey.SILENT_CURRENT:
        if not isinstance(value, dict) or not isinstance(value.get("active", False), bool):
            raise ValidationError("'silentCurrent' must be {active, startTs}")
        start_ts = value.get("startTs")
        if start_ts is not None and not _is_timestamp(start_ts):
            raise ValidationError("'silentCurrent.startTs' must be a timestamp")
        if value.get("active") and start_ts is None:
            raise ValidationError("Active 'silentCurrent' needs a startTs")
    elif key is SettingKey.LAST_QUICK:
        if not isinstance(value, dict):
            raise ValidationError("'lastQuick' must be an object")


class SettingsRegistry:
    """Typed access to configuration values stored in the object store."""

    def __init__(self, store: ObjectStore):
        self._store = store

    @staticmethod
    def as_record(key: str, value: Any) -> dict[str, Any]:
        """Checked settings-collection record for a key/value pair."""
        check_setting_value(key, value)
        return {"key": _as_key(key).value, "value": value}

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Stored value for key, or default if absent."""
        row = self._store.get(SETTINGS, _as_key(key).value)
        return default if row is None else row.get("value", default)

    def set_setting(self, key: str, value: Any) -> None:
        """
        Upsert a setting.

        Raises:
            ValidationError: If the key is unknown or the value is malformed
        """
        self._store.put(SETTINGS, self.as_record(key, value))

    def has_setting(self, key: str) -> bool:
        """True if the key exists with a non-null value."""
        return self.get_setting(key) is not None

    def ensure_defaults(self) -> list[str]:
        """
        Seed missing settings on first run.

        Returns:
            Keys that were filled in
        """
        filled: list[str] = []

        # only None means missing, an empty list is kept
        if self.get_setting(SettingKey.TRIGGERS) is None:
            self.set_setting(SettingKey.TRIGGERS, list(DEFAULT_TRIGGERS))
            filled.append(SettingKey.TRIGGERS.value)

        if not self.get_setting(SettingKey.RECOVERY):
            # generated exactly once, never rotated automatically
            self.set_setting(SettingKey.RECOVERY, generate_recovery_key())
            filled.append(SettingKey.RECOVERY.value)

        if not self.get_setting(SettingKey.SILENT_CURRENT):
            self.set_setting(SettingKey.SILENT_CURRENT, dict(IDLE_MARKER))
            filled.append(SettingKey.SILENT_CURRENT.value)

        if filled:
            logger.info("Seeded default settings: %s", ", ".join(filled))
        return filled

    # =========================================================================
    # Trigger vocabulary
    # =========================================================================

    def get_triggers(self) -> list[str]:
        triggers = self.get_setting(SettingKey.TRIGGERS)
        return list(DEFAULT_TRIGGERS) if triggers is None else list(triggers)

    def add_trigger(self, name: str) -> list[str]:
        """Append a trigger; blank names are rejected."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Trigger name cannot be blank")
        triggers = self.get_triggers()
        triggers.append(name)
        self.set_setting(SettingKey.TRIGGERS, triggers)
        return triggers

    def rename_trigger(self, index: int, name: str) -> list[str]:
        """Rename the trigger at index. Existing incidents keep the old text."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Trigger name cannot be blank")
        triggers = self.get_triggers()
        self._check_index(index, triggers)
        triggers[index] = name
        self.set_setting(SettingKey.TRIGGERS, triggers)
        return triggers

    def delete_trigger(self, index: int) -> list[str]:
        triggers = self.get_triggers()
        self._check_index(index, triggers)
        del triggers[index]
        self.set_setting(SettingKey.TRIGGERS, triggers)
        return triggers

    @staticmethod
    def _check_index(index: int, triggers: list[str]) -> None:
        if not 0 <= index < len(triggers):
            raise ValidationError(f"No trigger at position {index}")


__all__ = ["SettingsRegistry", "IDLE_MARKER", "check_setting_value"]
