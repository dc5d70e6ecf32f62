"""
Tests for report figures.
"""

from __future__ import annotations

import pytest

from dailylog.models.incident import MS_PER_DAY, Incident, SilentSession
from dailylog.services.reports import TOP_TRIGGERS, build_report, silent_durations


def _incident(n, started_by="Me", trigger="Money", silent=None):
    start, end = silent or (None, None)
    return Incident(
        id=f"i{n}", ts=n, started_by=started_by, intensity=3, trigger=trigger,
        silent_start_ts=start, silent_end_ts=end,
    )


def test_empty_report():
    """Test a report over no data."""
    report = build_report([], [])
    assert report.incident_count == 0
    assert report.silent_total_days == 0
    assert report.silent_average_days == 0
    assert report.silent_longest_days == 0
    assert report.started_by == []
    assert report.top_triggers == []


def test_silent_durations_sources():
    """Test silent durations come from sessions and incidents."""
    incidents = [_incident(1, silent=(0, MS_PER_DAY)), _incident(2, silent=(0, None))]
    sessions = [
        SilentSession(id="s1", start_ts=0, end_ts=2 * MS_PER_DAY),
        SilentSession(id="s2", start_ts=0),
    ]
    assert sorted(silent_durations(incidents, sessions)) == [1.0, 2.0]


def test_silent_statistics():
    """Test silent period statistics."""
    sessions = [
        SilentSession(id="s1", start_ts=0, end_ts=MS_PER_DAY),
        SilentSession(id="s2", start_ts=0, end_ts=3 * MS_PER_DAY),
    ]
    report = build_report([], sessions)
    assert report.silent_total_days == 4.0
    assert report.silent_average_days == 2.0
    assert report.silent_longest_days == 3.0


def test_started_by_shares():
    """Test 'started by' shares."""
    incidents = [_incident(1, "Me"), _incident(2, "Me"), _incident(3, "Wife"), _incident(4, "Both")]
    report = build_report(incidents, [])
    assert report.incident_count == 4
    assert report.started_by[0].label == "Me"
    assert report.started_by[0].count == 2
    assert report.started_by[0].percent == pytest.approx(50.0)
    assert sum(share.count for share in report.started_by) == 4


def test_top_triggers_limited():
    """Test only the top triggers are reported."""
    incidents = [_incident(n, trigger=f"T{n % 8}") for n in range(16)]
    report = build_report(incidents, [])
    assert len(report.top_triggers) == TOP_TRIGGERS
    assert all(share.count == 2 for share in report.top_triggers)
