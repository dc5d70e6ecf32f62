"""
Incident and Silent Session models for Daily Log.

Both are plain dataclasses stored as JSON documents in the object store.
to_dict()/from_dict() use the camelCase field names of the backup format,
so records written by older versions of the app import unchanged.

Incident invariant:
    silent_end_ts set  =>  silent_start_ts set and silent_start_ts <= silent_end_ts
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from dailylog.config.vocabulary import SILENT_TAG, parse_intensity
from dailylog.lib.exceptions import ValidationError

MS_PER_DAY = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_id() -> str:
    """Opaque unique record identifier."""
    return uuid.uuid4().hex


def duration_days(start_ts: int, end_ts: int) -> float:
    """
    Length of a start/end pair in fractional days.

    Clock-skewed pairs (end before start) clamp to 0.

    Example:
        >>> duration_days(0, 43_200_000)
        0.5
    """
    return max(0, end_ts - start_ts) / MS_PER_DAY


def _optional_ts(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{key} must be a millisecond timestamp, got {value!r}")
    return int(value)


@dataclass
class Incident:
    """
    One logged incident.

    Attributes:
        id: Opaque unique identifier
        ts: Creation time, ms since epoch
        started_by: Who started it (STARTED_BY vocabulary)
        intensity: 1..5
        trigger: Free-text category, normally from the trigger vocabulary
        what: Descriptive tags (WHAT vocabulary)
        note: Free-form note
        silent_start_ts: Start of an attributed silent period
        silent_end_ts: End of an attributed silent period
    """

    id: str
    ts: int
    started_by: str
    intensity: int
    trigger: str
    what: list[str] = field(default_factory=list)
    note: str = ""
    silent_start_ts: int | None = None
    silent_end_ts: int | None = None

    def validate(self) -> None:
        """
        Check the silent-period invariant.

        Raises:
            ValidationError: If silent_end_ts is set without a start, or precedes it
        """
        if self.silent_end_ts is None:
            return
        if self.silent_start_ts is None:
            raise ValidationError(f"Incident {self.id}: silentEndTs set without silentStartTs")
        if self.silent_start_ts > self.silent_end_ts:
            raise ValidationError(f"Incident {self.id}: silentStartTs is after silentEndTs")

    @property
    def is_silence_related(self) -> bool:
        """True if the incident owns a silent start or carries the Silent tag."""
        return self.silent_start_ts is not None or SILENT_TAG in self.what

    @property
    def silent_days(self) -> float | None:
        """Length of the attributed silent period, if closed."""
        if self.silent_start_ts is None or self.silent_end_ts is None:
            return None
        return duration_days(self.silent_start_ts, self.silent_end_ts)

    def quick_preset(self) -> dict[str, Any]:
        """Categorical fields saved as the last-used quick-entry preset."""
        return {
            "startedBy": self.started_by,
            "intensity": str(self.intensity),
            "trigger": self.trigger,
            "what": list(self.what),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage and backups."""
        return {
            "id": self.id,
            "ts": self.ts,
            "startedBy": self.started_by,
            "intensity": str(self.intensity),
            "trigger": self.trigger,
            "what": list(self.what),
            "note": self.note,
            "silentStartTs": self.silent_start_ts,
            "silentEndTs": self.silent_end_ts,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Incident:
        """
        Deserialize from storage.

        Raises:
            ValidationError: If a required field is missing or has the wrong type
        """
        try:
            record_id = data["id"]
            ts = data["ts"]
        except KeyError as e:
            raise ValidationError(f"Incident is missing field {e.args[0]!r}") from e
        if not isinstance(record_id, str):
            raise ValidationError(f"Expected str for id, got {type(record_id)}")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            raise ValidationError(f"Expected timestamp for ts, got {type(ts)}")
        try:
            intensity = parse_intensity(data.get("intensity", 3))
        except ValueError as e:
            raise ValidationError(str(e)) from e

        what = data.get("what") or []
        if not isinstance(what, list):
            raise ValidationError(f"Expected list for what, got {type(what)}")

        return cls(
            id=record_id,
            ts=int(ts),
            started_by=str(data.get("startedBy") or "Unknown"),
            intensity=intensity,
            trigger=str(data.get("trigger") or ""),
            what=[str(tag) for tag in what],
            note=str(data.get("note") or ""),
            silent_start_ts=_optional_ts(data, "silentStartTs"),
            silent_end_ts=_optional_ts(data, "silentEndTs"),
        )


@dataclass(frozen=True)
class SilentSession:
    """
    A silent period. Only closed sessions are persisted.

    Attributes:
        id: Opaque unique identifier
        start_ts: Start, ms since epoch
        end_ts: End, ms since epoch (None while open)
    """

    id: str
    start_ts: int
    end_ts: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end_ts is None

    @property
    def days(self) -> float:
        """Clamped length in days; 0 while open."""
        if self.end_ts is None:
            return 0.0
        return duration_days(self.start_ts, self.end_ts)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "startTs": self.start_ts, "endTs": self.end_ts}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SilentSession:
        try:
            start_ts = data["startTs"]
            record_id = data["id"]
        except KeyError as e:
            raise ValidationError(f"Silent session is missing field {e.args[0]!r}") from e
        if isinstance(start_ts, bool) or not isinstance(start_ts, (int, float)):
            raise ValidationError(f"Expected timestamp for startTs, got {type(start_ts)}")
        return cls(
            id=str(record_id),
            start_ts=int(start_ts),
            end_ts=_optional_ts(data, "endTs"),
        )


__all__ = ["Incident", "SilentSession", "MS_PER_DAY", "duration_days", "new_id", "now_ms"]
