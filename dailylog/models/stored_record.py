"""
Storage row for the object store.

Every collection lives in the same table; a record is addressed by
(collection, record_id) and its body is kept as JSON so the store stays
schema-free. Callers own validation.
"""

from sqlalchemy import JSON, Column, Index, String

from dailylog.models.base import Base


class StoredRecord(Base):
    """
    One record of one collection.

    Attributes:
        collection: Collection name (e.g. "incidents", "settings")
        record_id: Value of the record's key field
        data: The full record as a JSON document
    """

    __tablename__ = "records"

    collection = Column(String(64), primary_key=True)
    record_id = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_records_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<StoredRecord(collection={self.collection}, record_id={self.record_id})>"


__all__ = ["StoredRecord"]
