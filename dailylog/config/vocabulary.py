"""
Fixed vocabularies for Daily Log.

The categorical fields of an incident are validated against these values
both when an incident is created and when it is edited. The trigger list is
the only user-editable vocabulary; DEFAULT_TRIGGERS seeds it on first run.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class SettingKey(StrEnum):
    """Keys of the settings collection (stable wire identifiers)."""

    TRIGGERS = "triggers"
    PIN = "pin"
    RECOVERY = "recovery"
    SILENT_CURRENT = "silentCurrent"
    LAST_QUICK = "lastQuick"


# Collection names inside the object store
INCIDENTS: Final = "incidents"
SILENT: Final = "silent"
SETTINGS: Final = "settings"

STARTED_BY: Final[tuple[str, ...]] = ("Wife", "Me", "Both", "Unknown")

INTENSITY_MIN: Final = 1
INTENSITY_MAX: Final = 5

WHAT: Final[tuple[str, ...]] = ("Argument", "Silent", "Yelling", "Crying", "Insult", "Other")

# Tag that marks an incident as silence related
SILENT_TAG: Final = "Silent"

DEFAULT_TRIGGERS: Final[tuple[str, ...]] = (
    "Respect/Behavior",
    "Money",
    "Time/Attention",
    "Family/Relatives",
    "Kids",
    "House/Chores",
    "Phone/Social",
    "Misunderstanding",
    "Other",
)

DEFAULT_STARTED_BY: Final = "Wife"
DEFAULT_INTENSITY: Final = 3
DEFAULT_TRIGGER: Final = "Misunderstanding"
DEFAULT_WHAT: Final[tuple[str, ...]] = ("Argument",)


def is_valid_started_by(value: str) -> bool:
    """Check a 'started by' value against the fixed vocabulary."""
    return value in STARTED_BY


def parse_intensity(value: int | str) -> int:
    """
    Parse an intensity given as int or numeric string.

    Raises:
        ValueError: If the value is not an integer within 1..5

    Example:
        >>> parse_intensity("4")
        4
    """
    if isinstance(value, bool):
        raise ValueError("Intensity must be a number from 1 to 5")
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ValueError(f"Intensity must be a number from 1 to 5, got {value!r}")
        value = int(value)
    if not isinstance(value, int) or not INTENSITY_MIN <= value <= INTENSITY_MAX:
        raise ValueError(f"Intensity must be a number from 1 to 5, got {value!r}")
    return value
