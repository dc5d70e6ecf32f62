"""
Silent-session tracker for Daily Log.

A two-state machine, IDLE <-> SILENT_ACTIVE, whose only state is the
"silentCurrent" settings marker {"active": bool, "startTs": int | None}.
At most one session is open at any time because there is only one marker;
open sessions are never written to the "silent" collection.

Closing a session also backfills the most recently created incident when it
looks silence related. That attachment is by recency, not identity: an
unrelated incident saved after the silence began can receive the period
instead. This is an accepted approximation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from dailylog.config.vocabulary import INCIDENTS, SETTINGS, SILENT, SettingKey
from dailylog.lib.exceptions import DailyLogException
from dailylog.models.incident import Incident, SilentSession, new_id, now_ms
from dailylog.services.object_store import ObjectStore
from dailylog.services.settings_registry import IDLE_MARKER, SettingsRegistry

logger = logging.getLogger(__name__)


class SilentState(StrEnum):
    """Tracker states."""

    IDLE = "idle"
    SILENT_ACTIVE = "silent_active"


@dataclass
class SilentTransition:
    """
    Outcome of a start/end request.

    Attributes:
        changed: False when the request was a no-op
        state: State after the request
        message: Notice for the caller ("Silent started", "Silent already ON", ...)
        start_ts: Start of the open or just-closed session
        session: The closed session (end_silent only)
        backfilled_incident_id: Incident that received the period, if any
    """

    changed: bool
    state: SilentState
    message: str
    start_ts: int | None = None
    session: SilentSession | None = None
    backfilled_incident_id: str | None = None


class SilentTracker:
    """Start/end silent periods and correlate them with incidents."""

    def __init__(
        self,
        store: ObjectStore,
        settings: SettingsRegistry,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._settings = settings
        self._clock = clock

    def _marker(self) -> dict[str, Any]:
        marker = self._settings.get_setting(SettingKey.SILENT_CURRENT)
        return marker if isinstance(marker, dict) else dict(IDLE_MARKER)

    def current_start(self) -> int | None:
        """Start of the open session, or None when idle."""
        marker = self._marker()
        start_ts = marker.get("startTs")
        if not marker.get("active") or isinstance(start_ts, bool):
            return None
        # a hand-edited or foreign marker without a numeric start reads as idle
        if not isinstance(start_ts, (int, float)):
            return None
        return int(start_ts)

    def state(self) -> SilentState:
        return SilentState.IDLE if self.current_start() is None else SilentState.SILENT_ACTIVE

    def _activate(self, start_ts: int) -> None:
        self._settings.set_setting(SettingKey.SILENT_CURRENT, {"active": True, "startTs": start_ts})

    def start_silent(self) -> SilentTransition:
        """IDLE -> SILENT_ACTIVE. No-op with a notice if already active."""
        current = self.current_start()
        if current is not None:
            return SilentTransition(
                changed=False,
                state=SilentState.SILENT_ACTIVE,
                message="Silent already ON",
                start_ts=current,
            )

        start_ts = self._clock()
        self._activate(start_ts)
        logger.info("Silent started at %d", start_ts)
        return SilentTransition(
            changed=True,
            state=SilentState.SILENT_ACTIVE,
            message="Silent started",
            start_ts=start_ts,
        )

    def begin_with_incident(self, start_ts: int) -> int:
        """
        Open a session owned by a newly saved incident.

        Returns:
            The start timestamp the incident should carry. If a session is
            already open its start is kept and returned, so the first start
            of the open session is never overwritten.
        """
        current = self.current_start()
        if current is not None:
            logger.info("Silent already ON since %d; incident joins it", current)
            return current
        self._activate(start_ts)
        logger.info("Silent started with incident at %d", start_ts)
        return start_ts

    def end_silent(self) -> SilentTransition:
        """
        SILENT_ACTIVE -> IDLE.

        The closed session and the idle marker are written in one
        transaction, then the latest incident is backfilled. A backfill
        failure is logged and never reopens the session. No-op with a
        notice if idle.
        """
        start_ts = self.current_start()
        if start_ts is None:
            return SilentTransition(
                changed=False,
                state=SilentState.IDLE,
                message="Silent is OFF",
            )

        end_ts = self._clock()
        session = SilentSession(id=new_id(), start_ts=start_ts, end_ts=end_ts)
        self._store.put_many([
            (SILENT, session.to_dict()),
            (SETTINGS, SettingsRegistry.as_record(SettingKey.SILENT_CURRENT, dict(IDLE_MARKER))),
        ])
        logger.info("Silent ended: %.2f days", session.days)

        try:
            backfilled = self._backfill_latest(start_ts, end_ts)
        except DailyLogException as e:
            logger.warning("Backfill after silent end failed: %s", type(e).__name__)
            backfilled = None

        return SilentTransition(
            changed=True,
            state=SilentState.IDLE,
            message="Silent ended",
            start_ts=start_ts,
            session=session,
            backfilled_incident_id=backfilled,
        )

    def _backfill_latest(self, start_ts: int, end_ts: int) -> str | None:
        """
        Attach the period to the newest incident if it is silence related and open.

        Raises:
            ValidationError: If a stored incident is unreadable
        """
        rows = self._store.get_all(INCIDENTS)
        if not rows:
            return None
        latest, latest_row = max(
            ((Incident.from_dict(row), row) for row in rows),
            key=lambda pair: pair[0].ts,
        )

        if latest.silent_end_ts is not None or not latest.is_silence_related:
            return None

        silent_start = latest.silent_start_ts if latest.silent_start_ts is not None else start_ts
        if silent_start > end_ts:
            logger.warning(
                "Skipping backfill of incident %s: start %d is after end %d",
                latest.id, silent_start, end_ts,
            )
            return None

        # update the raw row, unknown fields are preserved
        latest_row["silentStartTs"] = silent_start
        latest_row["silentEndTs"] = end_ts
        self._store.put(INCIDENTS, latest_row)
        return latest.id

    def sessions(self, since_ts: int | None = None) -> list[SilentSession]:
        """Closed sessions starting at or after since_ts, newest first."""
        sessions = [SilentSession.from_dict(row) for row in self._store.get_all(SILENT)]
        if since_ts is not None:
            sessions = [s for s in sessions if s.start_ts >= since_ts]
        return sorted(sessions, key=lambda s: s.start_ts, reverse=True)


__all__ = ["SilentState", "SilentTracker", "SilentTransition"]
