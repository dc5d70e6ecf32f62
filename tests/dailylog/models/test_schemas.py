"""
Tests for the pydantic request schemas.
"""

from __future__ import annotations

import pytest

from dailylog.lib.exceptions import ValidationError
from dailylog.models.schemas import IncidentDraft, IncidentEdit


class TestIncidentDraft:

    def test_defaults(self):
        """Test an empty draft gets the documented defaults."""
        draft = IncidentDraft.parse({})
        assert draft.started_by == "Wife"
        assert draft.intensity == 3
        assert draft.trigger == "Misunderstanding"
        assert draft.what == ["Argument"]
        assert draft.note == ""

    def test_wire_names_and_string_intensity(self):
        """Test drafts accept wire names and string intensities."""
        draft = IncidentDraft.parse({"startedBy": "Both", "intensity": "5", "trigger": "Kids"})
        assert draft.started_by == "Both"
        assert draft.intensity == 5

    def test_python_names(self):
        """Test drafts accept Python field names."""
        assert IncidentDraft(started_by="Me").started_by == "Me"

    def test_custom_trigger_allowed(self):
        """Test triggers outside the defaults are allowed."""
        assert IncidentDraft.parse({"trigger": "  Holidays "}).trigger == "Holidays"

    def test_what_deduplicated(self):
        """Test repeated 'what' tags are collapsed."""
        draft = IncidentDraft.parse({"what": ["Silent", "Argument", "Silent"]})
        assert draft.what == ["Silent", "Argument"]

    def test_note_stripped(self):
        """Test notes are stripped."""
        assert IncidentDraft.parse({"note": "  hi  "}).note == "hi"

    @pytest.mark.parametrize("data", [
        {"startedBy": "Neighbour"},
        {"intensity": 0},
        {"intensity": 6},
        {"intensity": "high"},
        {"trigger": "   "},
        {"what": ["Dancing"]},
        {"colour": "red"},
    ])
    def test_rejects_invalid(self, data):
        """Test out-of-vocabulary values are refused."""
        with pytest.raises(ValidationError):
            IncidentDraft.parse(data)

    def test_error_names_field(self):
        """Test validation errors name the offending field."""
        with pytest.raises(ValidationError, match="startedBy"):
            IncidentDraft.parse({"startedBy": "Neighbour"})


class TestIncidentEdit:

    def test_only_set_fields_change(self):
        """Test an edit only carries the fields it sets."""
        edit = IncidentEdit.parse({"intensity": "2"})
        assert edit.changes() == {"intensity": 2}

    def test_empty_edit(self):
        """Test an empty edit changes nothing."""
        assert IncidentEdit.parse({}).changes() == {}

    def test_multiple_fields(self):
        """Test an edit of several fields."""
        edit = IncidentEdit.parse({"startedBy": "Unknown", "trigger": "Money", "note": "x"})
        assert edit.changes() == {"started_by": "Unknown", "trigger": "Money", "note": "x"}

    @pytest.mark.parametrize("data", [
        {"startedBy": "Someone"},
        {"intensity": 9},
        {"intensity": None},
        {"trigger": ""},
        {"what": ["Silent"]},
    ])
    def test_rejects_invalid(self, data):
        """Test out-of-vocabulary values are refused."""
        with pytest.raises(ValidationError):
            IncidentEdit.parse(data)
