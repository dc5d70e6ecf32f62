"""
Encrypted backup export and import for Daily Log.

Export snapshots every collection (incidents, silent sessions, settings),
serializes it to JSON, and encrypts it under a passphrase:

    {"v": 1, "alg": "AES-GCM", "kdf": "PBKDF2-SHA256", "iter": 150000,
     "salt": <b64>, "iv": <b64>, "ct": <b64>}

The decrypted payload is
    {"exportedAt": ISO-8601, "incidents": [...], "silent": [...], "settings": [...]}

Import is destructive: after successful decryption the whole store is
replaced by the snapshot. The replacement runs in one transaction, so a
failed import leaves the previous data untouched.

Failure reporting:
- BackupFormatError: unsupported envelope (checked before any key derivation),
  or a decrypted payload whose records the app could not read back
- BackupDecryptionError: wrong passphrase OR corrupted file (never distinguished)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dailylog.config.vocabulary import INCIDENTS, SETTINGS, SILENT, SettingKey
from dailylog.lib.encryption import (
    ALGORITHM_ID,
    KDF_ID,
    MIN_KDF_ITERATIONS,
    PassphraseCipher,
    SealedPayload,
    b64decode,
    b64encode,
)
from dailylog.lib.exceptions import (
    BackupDecryptionError,
    BackupFormatError,
    DecryptionError,
    ValidationError,
)
from dailylog.models.incident import Incident, SilentSession, now_ms
from dailylog.services.object_store import ObjectStore
from dailylog.services.settings_registry import check_setting_value

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = 1
# Iteration counts accepted on import
MAX_KDF_ITERATIONS = 10_000_000

INVALID_FORMAT = "Invalid backup format"
DECRYPTION_FAILED = "Wrong passphrase or corrupted backup"

# Payload section -> object store collection
PAYLOAD_SECTIONS: dict[str, str] = {
    "incidents": INCIDENTS,
    "silent": SILENT,
    "settings": SETTINGS,
}


def _iso_now() -> str:
    """UTC timestamp in the same shape as JavaScript's toISOString()."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class BackupEnvelope:
    """
    Versioned wrapper around an encrypted snapshot.

    Attributes:
        iterations: PBKDF2 iteration count
        salt: Base64 KDF salt
        iv: Base64 AES-GCM nonce
        ct: Base64 ciphertext with GCM tag
        version: Envelope format version
        alg: Encryption algorithm identifier
        kdf: Key derivation identifier
    """

    iterations: int
    salt: str
    iv: str
    ct: str
    version: int = ENVELOPE_VERSION
    alg: str = ALGORITHM_ID
    kdf: str = KDF_ID

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk JSON shape."""
        return {
            "v": self.version,
            "alg": self.alg,
            "kdf": self.kdf,
            "iter": self.iterations,
            "salt": self.salt,
            "iv": self.iv,
            "ct": self.ct,
        }

    @classmethod
    def from_dict(cls, data: Any) -> BackupEnvelope:
        """
        Validate and parse an envelope.

        Only cheap structural checks happen here; nothing is decoded or derived.

        Raises:
            BackupFormatError: If the envelope is not a supported format
        """
        if not isinstance(data, dict):
            raise BackupFormatError(INVALID_FORMAT)
        if data.get("alg") != ALGORITHM_ID or data.get("kdf") != KDF_ID:
            raise BackupFormatError(INVALID_FORMAT)
        if data.get("v") != ENVELOPE_VERSION:
            raise BackupFormatError(INVALID_FORMAT)

        iterations = data.get("iter")
        if (
            isinstance(iterations, bool)
            or not isinstance(iterations, int)
            or not MIN_KDF_ITERATIONS <= iterations <= MAX_KDF_ITERATIONS
        ):
            raise BackupFormatError(INVALID_FORMAT)

        fields = {name: data.get(name) for name in ("salt", "iv", "ct")}
        if not all(isinstance(value, str) and value for value in fields.values()):
            raise BackupFormatError(INVALID_FORMAT)

        return cls(iterations=iterations, **fields)

    @classmethod
    def from_sealed(cls, sealed: SealedPayload) -> BackupEnvelope:
        return cls(
            iterations=sealed.iterations,
            salt=b64encode(sealed.salt),
            iv=b64encode(sealed.nonce),
            ct=b64encode(sealed.ciphertext),
        )

    def to_sealed(self) -> SealedPayload:
        """
        Decode the binary fields.

        Raises:
            BackupDecryptionError: If any field is not valid base64
        """
        try:
            return SealedPayload(
                salt=b64decode(self.salt),
                nonce=b64decode(self.iv),
                ciphertext=b64decode(self.ct),
                iterations=self.iterations,
            )
        except ValueError:
            raise BackupDecryptionError(DECRYPTION_FAILED) from None


@dataclass
class ImportResult:
    """Result of a successful import."""

    incidents: int
    sessions: int
    settings: int
    exported_at: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "incidents": self.incidents,
            "sessions": self.sessions,
            "settings": self.settings,
            "exported_at": self.exported_at,
        }


def _check_records(snapshot: dict[str, list[Any]]) -> None:
    """
    Check every record the app will later read back.

    Raises:
        BackupFormatError: On the first malformed incident, session or setting
    """
    try:
        for row in snapshot[INCIDENTS]:
            if not isinstance(row, dict):
                raise ValidationError("incident is not an object")
            Incident.from_dict(row).validate()
        for row in snapshot[SILENT]:
            if not isinstance(row, dict):
                raise ValidationError("silent session is not an object")
            SilentSession.from_dict(row)
        for row in snapshot[SETTINGS]:
            if not isinstance(row, dict):
                raise ValidationError("setting is not an object")
            if row.get("key") in list(SettingKey):
                check_setting_value(row["key"], row.get("value"))
    except ValidationError as e:
        raise BackupFormatError(f"{INVALID_FORMAT}: {e}") from e


class BackupPipeline:
    """
    Whole-store export/import through the passphrase cipher.

    Every export uses a fresh salt and nonce (see PassphraseCipher.seal).
    """

    def __init__(self, store: ObjectStore, cipher: PassphraseCipher | None = None):
        self._store = store
        self._cipher = cipher or PassphraseCipher()

    def snapshot(self) -> dict[str, Any]:
        """Plain (unencrypted) payload of the whole store."""
        payload: dict[str, Any] = {"exportedAt": _iso_now()}
        for section, collection in PAYLOAD_SECTIONS.items():
            payload[section] = self._store.get_all(collection)
        return payload

    async def export(self, passphrase: str) -> dict[str, Any]:
        """
        Encrypt a snapshot of the whole store.

        Returns:
            The envelope as a JSON-serializable dict

        Raises:
            ValidationError: If the passphrase is empty
        """
        if not passphrase:
            raise ValidationError("Export passphrase cannot be empty")

        payload = self.snapshot()
        sealed = await self._cipher.seal_json(payload, passphrase)
        logger.info(
            "Backup exported: %d incidents, %d sessions, %d settings",
            len(payload["incidents"]), len(payload["silent"]), len(payload["settings"]),
        )
        return BackupEnvelope.from_sealed(sealed).to_dict()

    async def import_(self, envelope: Any, passphrase: str) -> ImportResult:
        """
        Decrypt an envelope and replace the whole store with its contents.

        Nothing is modified unless every step succeeds.

        Raises:
            BackupFormatError: Unsupported envelope or malformed payload
            BackupDecryptionError: Wrong passphrase or tampered data
        """
        parsed = BackupEnvelope.from_dict(envelope)
        sealed = parsed.to_sealed()

        try:
            plaintext = await self._cipher.open_json(sealed, passphrase or "")
        except DecryptionError:
            logger.warning("Backup import rejected: decryption failed")
            raise BackupDecryptionError(DECRYPTION_FAILED) from None

        snapshot, exported_at = self._parse_payload(plaintext)
        try:
            counts = self._store.replace_all(snapshot)
        except ValidationError as e:
            raise BackupFormatError(f"{INVALID_FORMAT}: {e}") from e

        result = ImportResult(
            incidents=counts.get(INCIDENTS, 0),
            sessions=counts.get(SILENT, 0),
            settings=counts.get(SETTINGS, 0),
            exported_at=exported_at,
        )
        logger.info("Backup imported: %s", result.to_dict())
        return result

    @staticmethod
    def _parse_payload(plaintext: bytes) -> tuple[dict[str, list[dict[str, Any]]], str | None]:
        try:
            data = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise BackupFormatError(INVALID_FORMAT) from None
        if not isinstance(data, dict):
            raise BackupFormatError(INVALID_FORMAT)

        snapshot: dict[str, list[dict[str, Any]]] = {}
        for section, collection in PAYLOAD_SECTIONS.items():
            records = data.get(section) or []
            if not isinstance(records, list):
                raise BackupFormatError(f"{INVALID_FORMAT}: '{section}' is not a list")
            snapshot[collection] = records

        exported_at = data.get("exportedAt")
        _check_records(snapshot)
        return snapshot, exported_at if isinstance(exported_at, str) else None

    async def export_to_file(self, passphrase: str, directory: str | Path) -> Path:
        """Export and write the envelope to a new file in directory."""
        return write_backup_file(await self.export(passphrase), directory)

    async def import_from_file(self, path: str | Path, passphrase: str) -> ImportResult:
        return await self.import_(read_backup_file(path), passphrase)


def write_backup_file(envelope: dict[str, Any], directory: str | Path) -> Path:
    """
    Write an envelope as daily-log-backup-<ms>.json.

    Returns:
        Path of the written file
    """
    backup_dir = Path(directory).expanduser()
    backup_dir.mkdir(parents=True, exist_ok=True)
    path = backup_dir / f"daily-log-backup-{now_ms()}.json"
    path.write_text(json.dumps(envelope), encoding="utf-8")
    path.chmod(0o600)
    logger.info("Backup written: %s", path.name)
    return path


def read_backup_file(path: str | Path) -> Any:
    """
    Load an envelope from disk.

    Raises:
        BackupFormatError: If the file cannot be read or is not JSON
    """
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        raise BackupFormatError("Invalid file") from None


__all__ = [
    "BackupEnvelope",
    "BackupPipeline",
    "ImportResult",
    "read_backup_file",
    "write_backup_file",
]
