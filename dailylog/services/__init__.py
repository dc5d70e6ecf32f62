"""
Services for Daily Log.

Services:
    - ObjectStore: Named collections of JSON records (SQLite)
    - SettingsRegistry: Typed settings on top of the store
    - AuthGate: PIN lock with recovery key
    - SilentTracker: Silent-period state machine
    - IncidentService: Incident CRUD and history queries
    - build_report: Report figures
"""

from .auth_gate import AuthGate, PinBackoffPolicy
from .incident_service import IncidentService, range_start_ts
from .object_store import ObjectStore
from .reports import Report, build_report
from .settings_registry import SettingsRegistry
from .silent_tracker import SilentState, SilentTracker, SilentTransition

__all__ = [
    "AuthGate",
    "PinBackoffPolicy",
    "IncidentService",
    "range_start_ts",
    "ObjectStore",
    "Report",
    "build_report",
    "SettingsRegistry",
    "SilentState",
    "SilentTracker",
    "SilentTransition",
]
