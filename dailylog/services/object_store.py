"""
Local object store for Daily Log.

Generic named-collection persistence keyed by record identifier, backed by
SQLite through SQLAlchemy. Every other component reads and writes through
this store.

Properties:
- Collections are created lazily on first write
- No schema enforcement: records are JSON documents, callers validate
- Each operation runs in its own transaction
- reset_all(), replace_all() and put_many() are all-or-nothing

Records must be JSON-serializable; get() returns a value deep-equal to what
was put() for such records (tuples come back as lists).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dailylog.config.vocabulary import SETTINGS
from dailylog.lib.exceptions import DatabaseError, ValidationError
from dailylog.models.base import Base
from dailylog.models.stored_record import StoredRecord

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class ObjectStore:
    """
    Collection/record store.

    The key field is "id" for every collection except "settings", whose
    records are {"key": ..., "value": ...}.
    """

    DEFAULT_KEY_FIELD = "id"
    KEY_FIELDS: Mapping[str, str] = {SETTINGS: "key"}

    def __init__(
        self,
        database_url: str = "sqlite://",
        engine: Engine | None = None,
    ):
        """
        Initialize the store and create its table if needed.

        Args:
            database_url: SQLAlchemy URL; "sqlite://" is an in-memory database
            engine: Pre-built engine (overrides database_url)
        """
        if engine is None:
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # in-memory databases live in a single connection
                engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                engine = create_engine(database_url)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Cannot initialize object store: {e}") from e

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        """Session in a transaction; storage failures become DatabaseError."""
        try:
            with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Object store %s failed: %s", action, type(e).__name__)
            raise DatabaseError(f"Object store {action} failed") from e

    def key_field(self, collection: str) -> str:
        """Name of the identifier field for a collection."""
        return self.KEY_FIELDS.get(collection, self.DEFAULT_KEY_FIELD)

    def _record_id(self, collection: str, record: Record) -> str:
        if not isinstance(record, dict):
            raise ValidationError(f"Records must be dicts, got {type(record).__name__}")
        key_field = self.key_field(collection)
        record_id = record.get(key_field)
        if isinstance(record_id, bool) or not isinstance(record_id, (str, int)) or record_id == "":
            raise ValidationError(f"Record in '{collection}' has no valid '{key_field}'")
        return str(record_id)

    def put(self, collection: str, record: Record) -> None:
        """
        Upsert a record by identifier.

        Args:
            collection: Collection name
            record: JSON-serializable dict containing the key field

        Raises:
            ValidationError: If the record has no usable key
            DatabaseError: If the write fails
        """
        record_id = self._record_id(collection, record)
        with self._transaction("put") as session:
            session.merge(StoredRecord(collection=collection, record_id=record_id, data=record))

    def put_many(self, items: Iterable[tuple[str, Record]]) -> None:
        """
        Upsert several (collection, record) pairs in one transaction.

        Raises:
            ValidationError: If any record has no usable key (nothing is written)
            DatabaseError: If the write fails (nothing is written)
        """
        staged = [
            (collection, self._record_id(collection, record), record)
            for collection, record in items
        ]
        with self._transaction("put_many") as session:
            for collection, record_id, record in staged:
                session.merge(
                    StoredRecord(collection=collection, record_id=record_id, data=record)
                )

    def get(self, collection: str, record_id: str) -> Record | None:
        """Return the record, or None if it does not exist."""
        with self._transaction("get") as session:
            row = session.get(StoredRecord, (collection, str(record_id)))
            return None if row is None else row.data

    def get_all(self, collection: str) -> list[Record]:
        """Every record in a collection, in no particular order."""
        with self._transaction("get_all") as session:
            rows = session.scalars(
                select(StoredRecord).where(StoredRecord.collection == collection)
            )
            return [row.data for row in rows]

    def delete(self, collection: str, record_id: str) -> None:
        """Remove a record; no-op if absent."""
        with self._transaction("delete") as session:
            row = session.get(StoredRecord, (collection, str(record_id)))
            if row is not None:
                session.delete(row)

    def count(self, collection: str) -> int:
        with self._transaction("count") as session:
            return session.scalar(
                select(func.count()).select_from(StoredRecord).where(
                    StoredRecord.collection == collection
                )
            ) or 0

    def collections(self) -> list[str]:
        """Names of collections that currently hold records."""
        with self._transaction("collections") as session:
            return sorted(session.scalars(select(StoredRecord.collection).distinct()))

    def reset_all(self) -> None:
        """
        Irrecoverably drop every collection.

        Runs as one transaction: on failure nothing is deleted.
        """
        with self._transaction("reset_all") as session:
            session.execute(delete(StoredRecord))
        logger.info("Object store cleared")

    def replace_all(self, snapshot: Mapping[str, Iterable[Record]]) -> dict[str, int]:
        """
        Replace the whole store with a snapshot.

        The clear and every write happen in a single transaction, so either
        the new snapshot is fully visible or the old contents are untouched.
        Within the snapshot, a later record with a duplicate key wins.

        Args:
            snapshot: Collection name -> records

        Returns:
            Number of records written per collection

        Raises:
            ValidationError: If a record has no usable key (nothing is changed)
            DatabaseError: If the transaction fails (nothing is changed)
        """
        # Validate keys before touching the database
        staged: list[tuple[str, str, Record]] = []
        counts: dict[str, int] = {}
        for collection, records in snapshot.items():
            counts[collection] = 0
            for record in records:
                staged.append((collection, self._record_id(collection, record), record))
                counts[collection] += 1

        with self._transaction("replace_all") as session:
            session.execute(delete(StoredRecord))
            for collection, record_id, record in staged:
                session.merge(
                    StoredRecord(collection=collection, record_id=record_id, data=record)
                )

        logger.info("Object store replaced: %s", counts)
        return counts

    def close(self) -> None:
        """Release database connections."""
        self._engine.dispose()


__all__ = ["ObjectStore", "Record"]
