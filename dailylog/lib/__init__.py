"""
Lib package for Daily Log.

Contains shared utilities:
- exceptions.py: Exception hierarchy rooted at DailyLogException
- encryption.py: Passphrase encryption (PBKDF2-SHA256 + AES-256-GCM), PIN hashing
- logging.py: structlog configuration
"""

from dailylog.lib.encryption import (
    PassphraseCipher,
    PinHasher,
    SealedPayload,
    generate_recovery_key,
    recovery_key_matches,
)
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
from dailylog.lib.logging import setup_logging

__all__ = [
    # Encryption
    "PassphraseCipher",
    "PinHasher",
    "SealedPayload",
    "generate_recovery_key",
    "recovery_key_matches",
    # Exceptions
    "DailyLogException",
    "ConfigurationError",
    "ValidationError",
    "DatabaseError",
    "NotFoundError",
    "EncryptionError",
    "DecryptionError",
    "SecurityError",
    "LockedError",
    "PinBackoffError",
    "StateError",
    "NoPresetError",
    "BackupError",
    "BackupFormatError",
    "BackupDecryptionError",
    # Logging
    "setup_logging",
]
