"""
Incident service for Daily Log.

Create, quick-save, edit, delete, and query incidents. Saving with
start_silent=True creates the incident and opens a silent session in one
step, with the incident carrying its own start timestamp.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from dailylog.config.vocabulary import INCIDENTS, SILENT_TAG, SettingKey
from dailylog.lib.exceptions import NoPresetError, NotFoundError
from dailylog.models.incident import MS_PER_DAY, Incident, SilentSession, new_id, now_ms
from dailylog.models.schemas import IncidentDraft, IncidentEdit
from dailylog.services.object_store import ObjectStore
from dailylog.services.settings_registry import SettingsRegistry
from dailylog.services.silent_tracker import SilentTracker

logger = logging.getLogger(__name__)


def range_start_ts(range_name: str, now: datetime | None = None) -> int:
    """
    Lower timestamp bound (ms) for a history/report range.

    Args:
        range_name: "all", "week" (since Monday 00:00 local), "month",
            "year", or a number of days such as "30"
        now: Reference local time (defaults to datetime.now())

    Returns:
        Milliseconds since epoch; 0 for "all" and for unknown values
    """
    now = now or datetime.now()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if range_name == "all":
        return 0
    if range_name == "week":
        start = midnight - timedelta(days=now.weekday())
    elif range_name == "month":
        start = midnight.replace(day=1)
    elif range_name == "year":
        start = midnight.replace(month=1, day=1)
    else:
        try:
            days = float(range_name)
        except (TypeError, ValueError):
            return 0
        if not math.isfinite(days):
            return 0
        return int(now.timestamp() * 1000 - days * MS_PER_DAY)
    return int(start.timestamp() * 1000)


def _matches(incident: Incident, query: str) -> bool:
    return any(
        query in (field or "").lower()
        for field in (incident.note, incident.trigger, incident.started_by)
    )


class IncidentService:
    """CRUD and queries over the incidents collection."""

    RECENT_LIMIT = 7

    def __init__(
        self,
        store: ObjectStore,
        settings: SettingsRegistry,
        tracker: SilentTracker,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._settings = settings
        self._tracker = tracker
        self._clock = clock

    def save_incident(
        self,
        draft: IncidentDraft | dict[str, Any],
        start_silent: bool = False,
    ) -> Incident:
        """
        Create an incident.

        Args:
            draft: Validated draft, or raw fields to validate
            start_silent: Also begin a silent period now

        Returns:
            The stored incident

        Raises:
            ValidationError: If the draft is invalid
        """
        if not isinstance(draft, IncidentDraft):
            draft = IncidentDraft.parse(draft)

        ts = self._clock()
        incident = Incident(
            id=new_id(),
            ts=ts,
            started_by=draft.started_by,
            intensity=draft.intensity,
            trigger=draft.trigger,
            what=list(draft.what),
            note=draft.note,
        )

        if start_silent:
            incident.silent_start_ts = self._tracker.begin_with_incident(ts)
            if SILENT_TAG not in incident.what:
                incident.what.append(SILENT_TAG)

        incident.validate()
        self._store.put(INCIDENTS, incident.to_dict())
        self._settings.set_setting(SettingKey.LAST_QUICK, incident.quick_preset())
        logger.info("Incident saved: %s (silent=%s)", incident.id, start_silent)
        return incident

    def quick_save(self, note: str = "") -> Incident:
        """
        Save a new incident with the categorical fields of the last one.

        Raises:
            NoPresetError: If nothing has been saved yet
        """
        preset = self._settings.get_setting(SettingKey.LAST_QUICK)
        if not preset:
            raise NoPresetError("No quick preset yet")
        return self.save_incident(IncidentDraft.parse({**preset, "note": note}))

    def get_incident(self, incident_id: str) -> Incident | None:
        row = self._store.get(INCIDENTS, incident_id)
        return None if row is None else Incident.from_dict(row)

    def edit_incident(
        self,
        incident_id: str,
        edit: IncidentEdit | dict[str, Any],
    ) -> Incident:
        """
        Apply a structured edit request.

        Raises:
            ValidationError: If a field is out of vocabulary
            NotFoundError: If the incident does not exist
        """
        if not isinstance(edit, IncidentEdit):
            edit = IncidentEdit.parse(edit)

        row = self._store.get(INCIDENTS, incident_id)
        if row is None:
            raise NotFoundError(f"Incident {incident_id} not found")

        incident = Incident.from_dict(row)
        for name, value in edit.changes().items():
            setattr(incident, name, value)
        incident.validate()

        row.update(incident.to_dict())
        self._store.put(INCIDENTS, row)
        logger.info("Incident updated: %s (%s)", incident_id, ", ".join(edit.changes()))
        return incident

    def delete_incident(self, incident_id: str) -> None:
        self._store.delete(INCIDENTS, incident_id)
        logger.info("Incident deleted: %s", incident_id)

    def all_incidents(self) -> list[Incident]:
        """Every incident, newest first."""
        incidents = [Incident.from_dict(row) for row in self._store.get_all(INCIDENTS)]
        return sorted(incidents, key=lambda i: i.ts, reverse=True)

    def recent(self, limit: int = RECENT_LIMIT) -> list[Incident]:
        return self.all_incidents()[:limit]

    def list_incidents(
        self,
        since_ts: int | None = None,
        query: str | None = None,
    ) -> list[Incident]:
        """
        History query, newest first.

        Args:
            since_ts: Keep incidents with ts >= since_ts
            query: Case-insensitive substring over note, trigger and startedBy
        """
        incidents = self.all_incidents()
        if since_ts is not None:
            incidents = [i for i in incidents if i.ts >= since_ts]
        needle = (query or "").strip().lower()
        if needle:
            incidents = [i for i in incidents if _matches(i, needle)]
        return incidents

    def list_sessions(self, since_ts: int | None = None) -> list[SilentSession]:
        """Closed silent sessions starting at or after since_ts."""
        return self._tracker.sessions(since_ts)


__all__ = ["IncidentService", "range_start_ts"]
