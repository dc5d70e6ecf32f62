"""
Shared test fixtures for Daily Log.

This module provides common fixtures used across all test modules:
- Object store on an in-memory SQLite database
- Settings registry with defaults seeded
- A controllable millisecond clock
- Passphrase cipher with the lowest accepted iteration count
- Silent tracker, incident service and the DailyLog facade

Usage:
    All fixtures are automatically available to any test in the tests/ directory.
"""

from __future__ import annotations

import os

import pytest

# ---------------------------------------------------------------------------
# 1. Environment setup -- human-readable logs, in-memory database
# ---------------------------------------------------------------------------

os.environ.setdefault("DAILYLOG_DEV_MODE", "1")
os.environ.setdefault("DAILYLOG_DB_PATH", ":memory:")

from dailylog.config.app_config import AppConfig  # noqa: E402
from dailylog.core.daily_log import DailyLog  # noqa: E402
from dailylog.lib.encryption import MIN_KDF_ITERATIONS, PassphraseCipher  # noqa: E402
from dailylog.services.incident_service import IncidentService  # noqa: E402
from dailylog.services.object_store import ObjectStore  # noqa: E402
from dailylog.services.settings_registry import SettingsRegistry  # noqa: E402
from dailylog.services.silent_tracker import SilentTracker  # noqa: E402

# 2024-03-06 12:00:00 UTC
START_MS = 1_709_726_400_000
HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


# ---------------------------------------------------------------------------
# 2. Storage
# ---------------------------------------------------------------------------

@pytest.fixture()
def store():
    """
    Provide an ObjectStore backed by a fresh in-memory SQLite database.

    The engine is disposed after the test finishes.
    """
    object_store = ObjectStore("sqlite://")
    yield object_store
    object_store.close()


@pytest.fixture()
def settings(store):
    """SettingsRegistry with first-run defaults already seeded."""
    registry = SettingsRegistry(store)
    registry.ensure_defaults()
    return registry


# ---------------------------------------------------------------------------
# 3. Time and crypto
# ---------------------------------------------------------------------------

@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cipher():
    """PassphraseCipher at the minimum accepted iteration count, for speed."""
    return PassphraseCipher(iterations=MIN_KDF_ITERATIONS)


# ---------------------------------------------------------------------------
# 4. Services
# ---------------------------------------------------------------------------

@pytest.fixture()
def tracker(store, settings, clock):
    return SilentTracker(store, settings, clock=clock)


@pytest.fixture()
def incident_service(store, settings, tracker, clock):
    return IncidentService(store, settings, tracker, clock=clock)


@pytest.fixture()
def app_config(tmp_path):
    return AppConfig(
        db_path=":memory:",
        kdf_iterations=MIN_KDF_ITERATIONS,
        backup_dir=str(tmp_path / "backups"),
    )


@pytest.fixture()
def app(app_config, clock):
    """
    Provide an opened DailyLog facade on an in-memory database.

    No PIN is set, so the gate starts unlocked.
    """
    daily_log = DailyLog.open(app_config, clock=clock)
    yield daily_log
    daily_log.close()
