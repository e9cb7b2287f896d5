"""
Database Models for the SQL key-value store

The registry persists its whole state as one serialized blob, so the schema
is a single key/value table. Each key holds the latest blob written under it.
"""

from datetime import datetime, timezone

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import String, DateTime, Text


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueEntry(SQLModel, table=True):
    """
    One stored blob.

    Fields:
    - key: Storage key (primary key)
    - value: Serialized payload (JSON text)
    - updated_at: Time of the last write
    """
    __tablename__ = "kv_store"

    key: str = Field(
        sa_column=Column(String(255), primary_key=True)
    )
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
