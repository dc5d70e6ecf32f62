"""
Report figures for Daily Log.

Simple reducers over an already filtered set of incidents and closed
sessions. Presentation (bars, rounding) belongs to the caller.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from dailylog.models.incident import Incident, SilentSession

TOP_TRIGGERS = 6


@dataclass
class CountShare:
    """A category with its count and share of the total (0..100)."""

    label: str
    count: int
    percent: float


@dataclass
class Report:
    """Figures for one range."""

    incident_count: int = 0
    silent_total_days: float = 0.0
    silent_average_days: float = 0.0
    silent_longest_days: float = 0.0
    started_by: list[CountShare] = field(default_factory=list)
    top_triggers: list[CountShare] = field(default_factory=list)


def _shares(counter: Counter[str], total: int, limit: int | None = None) -> list[CountShare]:
    return [
        CountShare(label=label, count=count, percent=(count / total * 100) if total else 0.0)
        for label, count in counter.most_common(limit)
    ]


def silent_durations(
    incidents: list[Incident],
    sessions: list[SilentSession],
) -> list[float]:
    """
    Durations in days from closed sessions and from incidents with both
    silent timestamps.

    A backfilled incident and its session both contribute, as they always
    have; the two sources are not de-duplicated.
    """
    durations = [s.days for s in sessions if not s.is_open]
    durations.extend(i.silent_days for i in incidents if i.silent_days is not None)
    return durations


def build_report(incidents: list[Incident], sessions: list[SilentSession]) -> Report:
    """Compute counts, silent-duration statistics and category shares."""
    durations = silent_durations(incidents, sessions)
    total = len(incidents)
    return Report(
        incident_count=total,
        silent_total_days=sum(durations),
        silent_average_days=sum(durations) / len(durations) if durations else 0.0,
        silent_longest_days=max(durations, default=0.0),
        started_by=_shares(Counter(i.started_by for i in incidents), total),
        top_triggers=_shares(Counter(i.trigger for i in incidents), total, TOP_TRIGGERS),
    )


__all__ = ["CountShare", "Report", "build_report", "silent_durations"]
