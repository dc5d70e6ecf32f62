"""
Custom exception hierarchy for Daily Log.

Provides structured exception types for all subsystems:
- Configuration, validation, storage
- Encryption, authentication, backup import/export

All exceptions inherit from DailyLogException, enabling
catch-all for Daily Log errors while keeping the
ability to catch specific error types.
"""

from __future__ import annotations


class DailyLogException(Exception):
    """Base exception for all Daily Log errors."""


class ConfigurationError(DailyLogException):
    """Missing or invalid environment variables and config values."""


class ValidationError(DailyLogException):
    """Input validation failures (out-of-vocabulary values, broken record invariants)."""


class DatabaseError(DailyLogException):
    """Object store connection, query, or transaction failures."""


class NotFoundError(DailyLogException):
    """An operation that needs an existing record was given an unknown identifier."""


class EncryptionError(DailyLogException):
    """Key derivation or encryption failures."""


class DecryptionError(EncryptionError):
    """Authenticated decryption failed (wrong key, wrong nonce, or tampered data)."""


class SecurityError(DailyLogException):
    """Authentication gate failures."""


class LockedError(SecurityError):
    """A protected operation was attempted while the PIN gate is locked."""


class PinBackoffError(SecurityError):
    """An unlock attempt was made during an active backoff window."""

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"Too many wrong PIN attempts, retry in {retry_after:.0f}s")
        self.retry_after = retry_after


class StateError(DailyLogException):
    """Invalid state transitions or missing required state."""


class NoPresetError(StateError):
    """Quick save was requested before any incident was saved."""


class BackupError(DailyLogException):
    """Backup export or import failures."""


class BackupFormatError(BackupError):
    """The backup envelope or payload is not in a supported format."""


class BackupDecryptionError(BackupError, DecryptionError):
    """Wrong passphrase or corrupted backup (deliberately indistinguishable)."""
