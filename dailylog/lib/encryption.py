"""
Encryption Foundation for Daily Log.

This module provides the cryptographic primitives used by the PIN gate and
the encrypted backup pipeline.

Key Features:
- Passphrase-based key derivation (PBKDF2-HMAC-SHA256, >= 100,000 iterations)
- Authenticated encryption of arbitrary payloads (AES-256-GCM)
- Salted one-way PIN hashing for the device gate
- Recovery key generation from a CSPRNG

Dependencies:
- cryptography>=41.0.0 (for AES-256-GCM and PBKDF2)

Usage:
    from dailylog.lib.encryption import PassphraseCipher

    cipher = PassphraseCipher()
    sealed = await cipher.seal_json({"hello": "world"}, "passphrase")
    data = await cipher.open_json(sealed, "passphrase")
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import json
import os
import secrets
from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from dailylog.lib.exceptions import DecryptionError, EncryptionError, ValidationError

# Identifiers written into backup envelopes
ALGORITHM_ID = "AES-GCM"
KDF_ID = "PBKDF2-SHA256"

KEY_SIZE = 32  # 256 bits for AES-256
SALT_SIZE = 16  # 128 bits
NONCE_SIZE = 12  # 96 bits for GCM (recommended)
MIN_KDF_ITERATIONS = 100_000
DEFAULT_KDF_ITERATIONS = 150_000

RECOVERY_KEY_BYTES = 16


# =============================================================================
# Encoding helpers
# =============================================================================

def b64encode(data: bytes) -> str:
    """Standard base64 with padding, as produced by browsers' btoa()."""
    return base64.b64encode(data).decode("ascii")


def b64decode(value: str) -> bytes:
    """
    Strict base64 decoding.

    Raises:
        ValueError: If the value is not a str or not valid base64
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected base64 str, got {type(value).__name__}")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ValueError("Invalid base64 data") from e


def generate_salt() -> bytes:
    """Fresh random salt for a single key derivation."""
    return os.urandom(SALT_SIZE)


def generate_nonce() -> bytes:
    """Fresh random GCM nonce. Never reuse one under the same key."""
    return os.urandom(NONCE_SIZE)


# =============================================================================
# Sealed payload
# =============================================================================

@dataclass
class SealedPayload:
    """
    Output of a passphrase encryption.

    Attributes:
        salt: KDF salt
        nonce: AES-GCM nonce
        ciphertext: Ciphertext with the 16-byte GCM tag appended
        iterations: KDF iteration count used
    """
    salt: bytes
    nonce: bytes
    ciphertext: bytes
    iterations: int


# =============================================================================
# Passphrase Cipher
# =============================================================================

class PassphraseCipher:
    """
    Password-based authenticated encryption.

    Security Properties:
    - PBKDF2-HMAC-SHA256 key derivation, iteration count >= 100,000
    - AES-256-GCM, decryption fails closed on any tampering
    - Fresh salt and nonce on every encryption

    The synchronous methods do the actual work. The async variants run the
    same work in a worker thread, so key derivation never blocks the event
    loop of the caller.

    Example:
        >>> cipher = PassphraseCipher(iterations=150_000)
        >>> key = cipher.derive_key("correct horse", salt)
        >>> ct = cipher.encrypt(b"data", key, nonce)
        >>> cipher.decrypt(ct, key, nonce)
        b'data'
    """

    def __init__(self, iterations: int = DEFAULT_KDF_ITERATIONS):
        """
        Initialize the cipher.

        Args:
            iterations: PBKDF2 iteration count used for new encryptions

        Raises:
            ValueError: If iterations is below MIN_KDF_ITERATIONS
        """
        check_iterations(iterations)
        self.iterations = iterations

    @staticmethod
    def derive_key(passphrase: str, salt: bytes, iterations: int = DEFAULT_KDF_ITERATIONS) -> bytes:
        """
        Derive a 32-byte key from a human passphrase.

        Args:
            passphrase: The user-chosen passphrase
            salt: Random salt stored alongside the ciphertext
            iterations: PBKDF2 iteration count

        Returns:
            32-byte AES key
        """
        check_iterations(iterations)
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(passphrase.encode("utf-8"))

    @staticmethod
    def encrypt(plaintext: bytes, key: bytes, nonce: bytes) -> bytes:
        """AES-256-GCM encrypt. The tag is appended to the returned ciphertext."""
        try:
            return AESGCM(key).encrypt(nonce, plaintext, None)
        except (ValueError, OverflowError) as e:
            raise EncryptionError(f"Encryption failed: {e}") from e

    @staticmethod
    def decrypt(ciphertext: bytes, key: bytes, nonce: bytes) -> bytes:
        """
        AES-256-GCM decrypt.

        Raises:
            DecryptionError: If the key or nonce is wrong or the data was tampered with
        """
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except (InvalidTag, ValueError) as e:
            raise DecryptionError("Decryption failed") from e

    async def derive_key_async(
        self,
        passphrase: str,
        salt: bytes,
        iterations: int | None = None,
    ) -> bytes:
        """Key derivation in a worker thread."""
        return await asyncio.to_thread(
            self.derive_key, passphrase, salt, iterations or self.iterations
        )

    def seal(self, plaintext: bytes, passphrase: str) -> SealedPayload:
        """Encrypt bytes under a passphrase with a fresh salt and nonce."""
        salt = generate_salt()
        nonce = generate_nonce()
        key = self.derive_key(passphrase, salt, self.iterations)
        return SealedPayload(
            salt=salt,
            nonce=nonce,
            ciphertext=self.encrypt(plaintext, key, nonce),
            iterations=self.iterations,
        )

    def unseal(self, sealed: SealedPayload, passphrase: str) -> bytes:
        """Reverse of seal(). Raises DecryptionError on any failure."""
        key = self.derive_key(passphrase, sealed.salt, sealed.iterations)
        return self.decrypt(sealed.ciphertext, key, sealed.nonce)

    async def seal_json(self, obj: Any, passphrase: str) -> SealedPayload:
        """Serialize obj to UTF-8 JSON and seal it in a worker thread."""
        plaintext = json.dumps(obj, ensure_ascii=False).encode("utf-8")
        return await asyncio.to_thread(self.seal, plaintext, passphrase)

    async def open_json(self, sealed: SealedPayload, passphrase: str) -> bytes:
        """
        Unseal in a worker thread and return the raw JSON bytes.

        Parsing is left to the caller, who decides how malformed JSON
        inside an authentic ciphertext is reported.
        """
        return await asyncio.to_thread(self.unseal, sealed, passphrase)


def check_iterations(iterations: int) -> None:
    """Reject iteration counts too low to resist offline brute force."""
    if not isinstance(iterations, int) or isinstance(iterations, bool):
        raise ValueError(f"KDF iterations must be an int, got {type(iterations).__name__}")
    if iterations < MIN_KDF_ITERATIONS:
        raise ValueError(
            f"KDF iterations must be at least {MIN_KDF_ITERATIONS}, got {iterations}"
        )


# =============================================================================
# PIN hashing
# =============================================================================

class PinHasher:
    """
    Salted one-way hashing for the device PIN.

    The credential layout ``{"salt": b64, "hash": b64}`` and the hash input
    ``"<pin>:<salt_b64>"`` match credentials found in existing backups, so a
    PIN survives export and import.

    A salt is generated only when a PIN is set; verification reuses the
    stored salt.
    """

    @staticmethod
    def hash_pin(pin: str, salt_b64: str) -> str:
        """
        Hash a PIN with a base64 salt.

        Returns:
            Base64-encoded SHA-256 digest
        """
        digest = hashlib.sha256(f"{pin}:{salt_b64}".encode("utf-8")).digest()
        return b64encode(digest)

    @classmethod
    def new_credential(cls, pin: str) -> dict[str, str]:
        """Create a credential with a fresh salt."""
        if not pin:
            raise ValidationError("PIN cannot be empty")
        salt_b64 = b64encode(generate_salt())
        return {"salt": salt_b64, "hash": cls.hash_pin(pin, salt_b64)}

    @classmethod
    def verify(cls, pin: str, credential: dict[str, Any]) -> bool:
        """Constant-time check of a PIN against a stored credential."""
        salt = credential.get("salt")
        expected = credential.get("hash")
        if not isinstance(salt, str) or not isinstance(expected, str):
            return False
        return secrets.compare_digest(cls.hash_pin(pin, salt), expected)

    @classmethod
    async def new_credential_async(cls, pin: str) -> dict[str, str]:
        return await asyncio.to_thread(cls.new_credential, pin)

    @classmethod
    async def verify_async(cls, pin: str, credential: dict[str, Any]) -> bool:
        return await asyncio.to_thread(cls.verify, pin, credential)


def generate_recovery_key() -> str:
    """
    Generate the account recovery key.

    Uses the secrets module; the key is the only way to clear a forgotten
    PIN, so it must come from a CSPRNG.

    Returns:
        32 lowercase hex characters
    """
    return secrets.token_hex(RECOVERY_KEY_BYTES)


def recovery_key_matches(supplied: str, stored: str) -> bool:
    """Compare a user-supplied recovery key with the stored one (whitespace-tolerant)."""
    if not supplied or not stored:
        return False
    return secrets.compare_digest(supplied.strip().encode("utf-8"), stored.encode("utf-8"))


__all__ = [
    "ALGORITHM_ID",
    "KDF_ID",
    "KEY_SIZE",
    "SALT_SIZE",
    "NONCE_SIZE",
    "MIN_KDF_ITERATIONS",
    "DEFAULT_KDF_ITERATIONS",
    "SealedPayload",
    "PassphraseCipher",
    "PinHasher",
    "b64encode",
    "b64decode",
    "check_iterations",
    "generate_salt",
    "generate_nonce",
    "generate_recovery_key",
    "recovery_key_matches",
]
