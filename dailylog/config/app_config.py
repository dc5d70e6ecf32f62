"""
Application configuration for Daily Log.

All settings come from environment variables so the same code runs in
tests, on a desktop, and in dev mode without config files.

Variables:
    DAILYLOG_DB_PATH          SQLite file path, or ":memory:"
    DAILYLOG_KDF_ITERATIONS   PBKDF2 iterations for backups (>= 100000)
    DAILYLOG_BACKUP_DIR       Directory for exported backup files
    DAILYLOG_DEV_MODE         "1" for human-readable logs
    LOG_LEVEL                 Root log level (default INFO)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dailylog.lib.encryption import DEFAULT_KDF_ITERATIONS, MIN_KDF_ITERATIONS
from dailylog.lib.exceptions import ConfigurationError

DEFAULT_HOME = Path.home() / ".dailylog"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class AppConfig:
    """Runtime configuration."""

    db_path: str = str(DEFAULT_HOME / "dailylog.db")
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS
    backup_dir: str = str(DEFAULT_HOME / "backups")
    dev_mode: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.kdf_iterations < MIN_KDF_ITERATIONS:
            raise ConfigurationError(
                f"DAILYLOG_KDF_ITERATIONS must be at least {MIN_KDF_ITERATIONS}, "
                f"got {self.kdf_iterations}"
            )
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown LOG_LEVEL: {self.log_level}")

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the configured database."""
        if self.db_path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.db_path}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (tests)

        Raises:
            ConfigurationError: If a variable has an invalid value
        """
        env = os.environ if environ is None else environ

        raw_iterations = env.get("DAILYLOG_KDF_ITERATIONS", str(DEFAULT_KDF_ITERATIONS))
        try:
            iterations = int(raw_iterations)
        except ValueError:
            raise ConfigurationError(
                f"DAILYLOG_KDF_ITERATIONS must be an integer, got {raw_iterations!r}"
            ) from None

        return cls(
            db_path=env.get("DAILYLOG_DB_PATH", str(DEFAULT_HOME / "dailylog.db")),
            kdf_iterations=iterations,
            backup_dir=env.get("DAILYLOG_BACKUP_DIR", str(DEFAULT_HOME / "backups")),
            dev_mode=env.get("DAILYLOG_DEV_MODE") == "1",
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )

    def ensure_directories(self) -> None:
        """Create the database directory if the database lives on disk."""
        if self.db_path != ":memory:":
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
