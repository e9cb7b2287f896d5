"""
SQL Key-Value Store

Stores blobs in the kv_store table through an async SQLModel session.
Each put is its own short transaction.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from shortlink.core.exceptions import PersistenceError
from shortlink.db.models import KeyValueEntry
from shortlink.storage.interface import KeyValueStore

logger = logging.getLogger(__name__)


class SQLKeyValueStore(KeyValueStore):
    """
    Key-value store backed by a relational database.

    Args:
        session_maker: Async session factory (see shortlink.db.session)
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def get(self, key: str) -> Optional[str]:
        try:
            async with self.session_maker() as session:
                entry = await session.get(KeyValueEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to read key '{key}'", original_error=e)

    async def put(self, key: str, blob: str) -> None:
        try:
            async with self.session_maker() as session:
                entry = await session.get(KeyValueEntry, key)
                if entry is None:
                    entry = KeyValueEntry(key=key, value=blob)
                else:
                    entry.value = blob
                    entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to write key '{key}'", original_error=e)

        logger.debug(f"Stored {len(blob)} bytes under '{key}'")
