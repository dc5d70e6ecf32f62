"""
Pydantic request schemas for Daily Log.

IncidentDraft carries the caller's input for a new incident; IncidentEdit
carries only the fields being changed on an existing one. Both validate the
categorical fields against the same fixed vocabularies, and out-of-vocabulary
values are rejected instead of falling back to the previous value.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from dailylog.config.vocabulary import (
    DEFAULT_INTENSITY,
    DEFAULT_STARTED_BY,
    DEFAULT_TRIGGER,
    DEFAULT_WHAT,
    INTENSITY_MAX,
    INTENSITY_MIN,
    STARTED_BY,
    WHAT,
    is_valid_started_by,
)
from dailylog.lib.exceptions import ValidationError


def _check_started_by(value: str) -> str:
    if not is_valid_started_by(value):
        raise ValueError(f"startedBy must be one of {', '.join(STARTED_BY)}")
    return value


def _check_trigger(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("trigger cannot be blank")
    return value


def _wrap(model: type[BaseModel], data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(problems) from e


class IncidentDraft(BaseModel):
    """Input for a new incident. Defaults mirror the quick-entry form."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    started_by: str = Field(DEFAULT_STARTED_BY, alias="startedBy")
    intensity: int = Field(DEFAULT_INTENSITY, ge=INTENSITY_MIN, le=INTENSITY_MAX)
    trigger: str = Field(DEFAULT_TRIGGER, max_length=200)
    what: list[str] = Field(default_factory=lambda: list(DEFAULT_WHAT))
    note: str = Field("", max_length=5000)

    @field_validator("started_by")
    @classmethod
    def validate_started_by(cls, v: str) -> str:
        return _check_started_by(v)

    @field_validator("trigger")
    @classmethod
    def validate_trigger(cls, v: str) -> str:
        return _check_trigger(v)

    @field_validator("what")
    @classmethod
    def validate_what(cls, v: list[str]) -> list[str]:
        unknown = [tag for tag in v if tag not in WHAT]
        if unknown:
            raise ValueError(f"unknown tags: {', '.join(unknown)}")
        # de-duplicate, keep order
        return list(dict.fromkeys(v))

    @field_validator("note")
    @classmethod
    def strip_note(cls, v: str) -> str:
        return v.strip()

    @classmethod
    def parse(cls, data: dict[str, Any]) -> IncidentDraft:
        """Validate raw input, raising the project's ValidationError."""
        return _wrap(cls, data)


class IncidentEdit(BaseModel):
    """
    Structured edit request for an existing incident.

    Only the fields present in the request are changed. A field that is
    present must hold a valid value; None is not accepted as "unchanged".
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    started_by: str | None = Field(None, alias="startedBy")
    intensity: int | None = Field(None, ge=INTENSITY_MIN, le=INTENSITY_MAX)
    trigger: str | None = Field(None, max_length=200)
    note: str | None = Field(None, max_length=5000)

    @field_validator("started_by")
    @classmethod
    def validate_started_by(cls, v: str | None) -> str | None:
        return None if v is None else _check_started_by(v)

    @field_validator("trigger")
    @classmethod
    def validate_trigger(cls, v: str | None) -> str | None:
        return None if v is None else _check_trigger(v)

    @model_validator(mode="after")
    def reject_explicit_none(self) -> IncidentEdit:
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """The fields being changed, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)

    @classmethod
    def parse(cls, data: dict[str, Any]) -> IncidentEdit:
        """Validate raw input, raising the project's ValidationError."""
        return _wrap(cls, data)


__all__ = ["IncidentDraft", "IncidentEdit"]
