"""
Models package for Daily Log.

Usage:
    from dailylog.models import Incident, SilentSession
    from dailylog.models import IncidentDraft, IncidentEdit
"""

from dailylog.models.base import Base
from dailylog.models.incident import Incident, SilentSession
from dailylog.models.schemas import IncidentDraft, IncidentEdit
from dailylog.models.stored_record import StoredRecord

__all__ = [
    # Base
    "Base",
    # Storage
    "StoredRecord",
    # Records
    "Incident",
    "SilentSession",
    # Requests
    "IncidentDraft",
    "IncidentEdit",
]
