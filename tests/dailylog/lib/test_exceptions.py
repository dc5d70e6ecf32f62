"""
Tests for the custom exception hierarchy.

Verifies:
- All exceptions are subclasses of DailyLogException
- Backup decryption failures are also DecryptionErrors
- Exception messages and extra attributes work correctly
"""

from __future__ import annotations

import pytest

from dailylog.lib.exceptions import (
    BackupDecryptionError,
    BackupError,
    BackupFormatError,
    ConfigurationError,
    DailyLogException,
    DatabaseError,
    DecryptionError,
    EncryptionError,
    LockedError,
    NoPresetError,
    NotFoundError,
    PinBackoffError,
    SecurityError,
    StateError,
    ValidationError,
)

# All concrete exception classes (excluding the base)
EXCEPTION_CLASSES = [
    ConfigurationError,
    ValidationError,
    DatabaseError,
    NotFoundError,
    EncryptionError,
    DecryptionError,
    SecurityError,
    LockedError,
    StateError,
    NoPresetError,
    BackupError,
    BackupFormatError,
    BackupDecryptionError,
]


class TestExceptionHierarchy:
    """Test that every exception is catchable as DailyLogException."""

    @pytest.mark.parametrize("exc_class", EXCEPTION_CLASSES)
    def test_subclass_of_base(self, exc_class):
        """Test every error derives from DailyLogException."""
        assert issubclass(exc_class, DailyLogException)
        assert issubclass(exc_class, Exception)

    @pytest.mark.parametrize("exc_class", EXCEPTION_CLASSES)
    def test_message_preserved(self, exc_class):
        """Test messages are kept."""
        err = exc_class("something broke")
        assert str(err) == "something broke"

    def test_decryption_is_encryption_error(self):
        """Test DecryptionError is an EncryptionError."""
        assert issubclass(DecryptionError, EncryptionError)

    def test_backup_decryption_is_both(self):
        """Test BackupDecryptionError is a backup and a decryption error."""
        err = BackupDecryptionError("Wrong passphrase or corrupted backup")
        assert isinstance(err, BackupError)
        assert isinstance(err, DecryptionError)

    def test_locked_is_security_error(self):
        """Test LockedError is a SecurityError."""
        assert issubclass(LockedError, SecurityError)

    def test_no_preset_is_state_error(self):
        """Test NoPresetError is a StateError."""
        assert issubclass(NoPresetError, StateError)

    def test_catch_all(self):
        """Test the base class catches every error."""
        with pytest.raises(DailyLogException):
            raise BackupFormatError("Invalid backup format")


class TestPinBackoffError:
    """Test the retry hint carried by PinBackoffError."""

    def test_retry_after(self):
        """Test PinBackoffError carries its wait time."""
        err = PinBackoffError(retry_after=29.6)
        assert err.retry_after == 29.6
        assert "30s" in str(err)
        assert isinstance(err, SecurityError)
