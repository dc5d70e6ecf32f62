"""
Daily Log application facade.

Wires the object store, settings registry, auth gate, silent tracker,
incident service, reports and backup pipeline from an AppConfig, and puts
the gate in front of every data operation.

Usage:
    app = DailyLog.from_env()
    if not app.is_unlocked:
        await app.unlock("4321")
    app.save_incident({"startedBy": "Me", "intensity": 2, "trigger": "Money"})
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from dailylog.config.app_config import AppConfig
from dailylog.infra.backup import BackupPipeline, ImportResult
from dailylog.lib.encryption import PassphraseCipher
from dailylog.lib.logging import setup_logging
from dailylog.models.incident import Incident, SilentSession, now_ms
from dailylog.models.schemas import IncidentDraft, IncidentEdit
from dailylog.services.auth_gate import AuthGate, PinBackoffPolicy
from dailylog.services.incident_service import IncidentService, range_start_ts
from dailylog.services.object_store import ObjectStore
from dailylog.services.reports import Report, build_report
from dailylog.services.settings_registry import SettingsRegistry
from dailylog.services.silent_tracker import SilentState, SilentTracker, SilentTransition

logger = logging.getLogger(__name__)


class DailyLog:
    """
    Single entry point for a frontend.

    Every method that reads or writes user data raises LockedError while a
    PIN is set and the gate has not been unlocked.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        store: ObjectStore | None = None,
        backoff: PinBackoffPolicy | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config or AppConfig()
        if store is None:
            self.config.ensure_directories()
            store = ObjectStore(self.config.database_url)
        self.store = store
        self.settings = SettingsRegistry(store)
        self.gate = AuthGate(self.settings, backoff=backoff)
        self.tracker = SilentTracker(store, self.settings, clock=clock)
        self.incidents = IncidentService(store, self.settings, self.tracker, clock=clock)
        self.backups = BackupPipeline(store, PassphraseCipher(self.config.kdf_iterations))

    @classmethod
    def open(cls, config: AppConfig | None = None, **kwargs: Any) -> DailyLog:
        """Build the app, seed defaults and evaluate the gate."""
        app = cls(config, **kwargs)
        app.start()
        return app

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **kwargs: Any) -> DailyLog:
        """
        Process entry point: read AppConfig from the environment, configure
        logging from it, then open the app.
        """
        config = AppConfig.from_env(environ)
        setup_logging(dev_mode=config.dev_mode, log_level=config.log_level)
        return cls.open(config, **kwargs)

    def start(self) -> None:
        self.settings.ensure_defaults()
        self.gate.refresh()
        logger.info("Daily Log ready (locked=%s)", not self.gate.is_unlocked)

    def close(self) -> None:
        self.store.close()

    # =========================================================================
    # Gate
    # =========================================================================

    @property
    def is_unlocked(self) -> bool:
        return self.gate.is_unlocked

    def on_foreground(self) -> bool:
        return self.gate.on_foreground()

    def lock(self) -> None:
        self.gate.lock()

    async def unlock(self, pin: str) -> bool:
        return await self.gate.unlock(pin)

    async def set_pin(self, pin: str, confirm: str) -> None:
        await self.gate.set_pin(pin, confirm)

    def reset_with_recovery(self, recovery_key: str) -> bool:
        return self.gate.reset_with_recovery(recovery_key)

    def get_recovery_key(self) -> str:
        return self.gate.get_recovery_key()

    # =========================================================================
    # Incidents
    # =========================================================================

    def save_incident(
        self,
        draft: IncidentDraft | dict[str, Any],
        start_silent: bool = False,
    ) -> Incident:
        self.gate.require_unlocked()
        return self.incidents.save_incident(draft, start_silent=start_silent)

    def quick_save(self, note: str = "") -> Incident:
        self.gate.require_unlocked()
        return self.incidents.quick_save(note)

    def get_incident(self, incident_id: str) -> Incident | None:
        self.gate.require_unlocked()
        return self.incidents.get_incident(incident_id)

    def edit_incident(self, incident_id: str, edit: IncidentEdit | dict[str, Any]) -> Incident:
        self.gate.require_unlocked()
        return self.incidents.edit_incident(incident_id, edit)

    def delete_incident(self, incident_id: str) -> None:
        self.gate.require_unlocked()
        self.incidents.delete_incident(incident_id)

    def recent(self, limit: int = IncidentService.RECENT_LIMIT) -> list[Incident]:
        self.gate.require_unlocked()
        return self.incidents.recent(limit)

    def history(
        self,
        range_name: str = "all",
        query: str | None = None,
        now: datetime | None = None,
    ) -> list[Incident]:
        """Incidents in a named range, optionally filtered by a search string."""
        self.gate.require_unlocked()
        return self.incidents.list_incidents(range_start_ts(range_name, now), query)

    # =========================================================================
    # Silent periods
    # =========================================================================

    def silent_state(self) -> SilentState:
        self.gate.require_unlocked()
        return self.tracker.state()

    def start_silent(self) -> SilentTransition:
        self.gate.require_unlocked()
        return self.tracker.start_silent()

    def end_silent(self) -> SilentTransition:
        self.gate.require_unlocked()
        return self.tracker.end_silent()

    def list_sessions(self, range_name: str = "all", now: datetime | None = None) -> list[SilentSession]:
        self.gate.require_unlocked()
        return self.incidents.list_sessions(range_start_ts(range_name, now))

    # =========================================================================
    # Trigger vocabulary
    # =========================================================================

    def get_triggers(self) -> list[str]:
        self.gate.require_unlocked()
        return self.settings.get_triggers()

    def add_trigger(self, name: str) -> list[str]:
        self.gate.require_unlocked()
        return self.settings.add_trigger(name)

    def rename_trigger(self, index: int, name: str) -> list[str]:
        self.gate.require_unlocked()
        return self.settings.rename_trigger(index, name)

    def delete_trigger(self, index: int) -> list[str]:
        self.gate.require_unlocked()
        return self.settings.delete_trigger(index)

    # =========================================================================
    # Reports
    # =========================================================================

    def report(self, range_name: str = "30", now: datetime | None = None) -> Report:
        """Figures for incidents and closed sessions in a range."""
        self.gate.require_unlocked()
        since_ts = range_start_ts(range_name, now)
        return build_report(
            self.incidents.list_incidents(since_ts),
            self.incidents.list_sessions(since_ts),
        )

    # =========================================================================
    # Backup and data lifecycle
    # =========================================================================

    async def export_backup(self, passphrase: str) -> dict[str, Any]:
        self.gate.require_unlocked()
        return await self.backups.export(passphrase)

    async def export_backup_file(self, passphrase: str, directory: str | Path | None = None) -> Path:
        """Export into directory (default: the configured backup directory)."""
        self.gate.require_unlocked()
        return await self.backups.export_to_file(passphrase, directory or self.config.backup_dir)

    async def import_backup(self, envelope: Any, passphrase: str) -> ImportResult:
        """
        Replace all data with a backup, then re-seed missing defaults and
        re-evaluate the gate, so a restored PIN takes effect immediately.
        """
        self.gate.require_unlocked()
        result = await self.backups.import_(envelope, passphrase)
        self._after_replace()
        return result

    async def import_backup_file(self, path: str | Path, passphrase: str) -> ImportResult:
        self.gate.require_unlocked()
        result = await self.backups.import_from_file(path, passphrase)
        self._after_replace()
        return result

    def clear_all_data(self) -> None:
        """Irrecoverably delete everything, including the PIN and recovery key."""
        self.gate.require_unlocked()
        self.store.reset_all()
        self._after_replace()
        logger.warning("All data cleared")

    def _after_replace(self) -> None:
        self.settings.ensure_defaults()
        self.gate.refresh()


__all__ = ["DailyLog"]
