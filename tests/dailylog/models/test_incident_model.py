"""
Tests for the Incident and SilentSession dataclasses.
"""

from __future__ import annotations

import pytest

from dailylog.lib.exceptions import ValidationError
from dailylog.models.incident import (
    MS_PER_DAY,
    Incident,
    SilentSession,
    duration_days,
    new_id,
)

# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def stored_incident() -> dict:
    """An incident as written by earlier versions of the app."""
    return {
        "id": "a1b2c3",
        "ts": 1_700_000_000_000,
        "startedBy": "Me",
        "intensity": "4",
        "trigger": "Money",
        "what": ["Argument", "Silent"],
        "note": "about rent",
        "silentStartTs": 1_700_000_000_000,
        "silentEndTs": None,
    }


# =============================================================================
# duration_days
# =============================================================================

class TestDurationDays:

    def test_half_day(self):
        """Test twelve hours is half a day."""
        assert duration_days(0, MS_PER_DAY // 2) == 0.5

    def test_clamps_negative(self):
        """Test a negative duration clamps to zero."""
        assert duration_days(10_000, 5_000) == 0

    def test_zero(self):
        """Test an empty duration."""
        assert duration_days(42, 42) == 0


def test_new_id_unique():
    """Test generated identifiers are unique."""
    assert new_id() != new_id()


# =============================================================================
# Incident
# =============================================================================

class TestIncident:

    def test_from_dict(self, stored_incident):
        """Test reading an incident from its wire format."""
        incident = Incident.from_dict(stored_incident)
        assert incident.started_by == "Me"
        assert incident.intensity == 4
        assert incident.what == ["Argument", "Silent"]
        assert incident.silent_start_ts == 1_700_000_000_000
        assert incident.silent_end_ts is None

    def test_to_dict_wire_format(self, stored_incident):
        """Test writing an incident to its wire format."""
        assert Incident.from_dict(stored_incident).to_dict() == stored_incident

    def test_intensity_serialized_as_string(self):
        """Test intensity is written as a string."""
        incident = Incident(id="x", ts=1, started_by="Me", intensity=2, trigger="Kids")
        assert incident.to_dict()["intensity"] == "2"

    def test_from_dict_missing_id(self, stored_incident):
        """Test an incident without an id is refused."""
        del stored_incident["id"]
        with pytest.raises(ValidationError, match="id"):
            Incident.from_dict(stored_incident)

    def test_from_dict_bad_intensity(self, stored_incident):
        """Test an out-of-range intensity is refused."""
        stored_incident["intensity"] = "11"
        with pytest.raises(ValidationError):
            Incident.from_dict(stored_incident)

    def test_from_dict_bad_timestamp(self, stored_incident):
        """Test a non-numeric timestamp is refused."""
        stored_incident["silentEndTs"] = "yesterday"
        with pytest.raises(ValidationError):
            Incident.from_dict(stored_incident)

    def test_from_dict_fills_missing_optionals(self):
        """Test missing optional fields get defaults."""
        incident = Incident.from_dict({"id": "x", "ts": 5})
        assert incident.started_by == "Unknown"
        assert incident.intensity == 3
        assert incident.what == []
        assert incident.note == ""

    def test_silence_related_by_tag(self):
        """Test the Silent tag marks an incident silence related."""
        incident = Incident(id="x", ts=1, started_by="Me", intensity=2, trigger="Kids", what=["Silent"])
        assert incident.is_silence_related

    def test_silence_related_by_start(self):
        """Test a silent start marks an incident silence related."""
        incident = Incident(
            id="x", ts=1, started_by="Me", intensity=2, trigger="Kids", silent_start_ts=1,
        )
        assert incident.is_silence_related

    def test_not_silence_related(self):
        """Test other incidents are not silence related."""
        incident = Incident(id="x", ts=1, started_by="Me", intensity=2, trigger="Kids", what=["Yelling"])
        assert not incident.is_silence_related

    def test_silent_days(self):
        """Test the length of an attached period."""
        incident = Incident(
            id="x", ts=1, started_by="Me", intensity=2, trigger="Kids",
            silent_start_ts=0, silent_end_ts=2 * MS_PER_DAY,
        )
        assert incident.silent_days == 2.0

    def test_silent_days_open(self, stored_incident):
        """Test an open period has no length."""
        assert Incident.from_dict(stored_incident).silent_days is None

    def test_validate_end_without_start(self):
        """Test an end without a start is invalid."""
        incident = Incident(
            id="x", ts=1, started_by="Me", intensity=2, trigger="Kids", silent_end_ts=5,
        )
        with pytest.raises(ValidationError):
            incident.validate()

    def test_validate_start_after_end(self):
        """Test a start after the end is invalid."""
        incident = Incident(
            id="x", ts=1, started_by="Me", intensity=2, trigger="Kids",
            silent_start_ts=10, silent_end_ts=5,
        )
        with pytest.raises(ValidationError):
            incident.validate()

    def test_quick_preset(self, stored_incident):
        """Test the quick preset keeps only categorical fields."""
        preset = Incident.from_dict(stored_incident).quick_preset()
        assert preset == {
            "startedBy": "Me",
            "intensity": "4",
            "trigger": "Money",
            "what": ["Argument", "Silent"],
        }


# =============================================================================
# SilentSession
# =============================================================================

class TestSilentSession:

    def test_roundtrip(self):
        """Test a session survives its wire format."""
        data = {"id": "s1", "startTs": 0, "endTs": MS_PER_DAY}
        session = SilentSession.from_dict(data)
        assert session.days == 1.0
        assert session.to_dict() == data

    def test_open_session(self):
        """Test a session without an end is open."""
        session = SilentSession(id="s1", start_ts=100)
        assert session.is_open
        assert session.days == 0.0

    def test_clock_skew_clamped(self):
        """Test an end before the start gives zero days."""
        assert SilentSession(id="s1", start_ts=100, end_ts=50).days == 0

    def test_missing_start(self):
        """Test a session without a start is refused."""
        with pytest.raises(ValidationError):
            SilentSession.from_dict({"id": "s1", "endTs": 5})
