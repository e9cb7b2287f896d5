"""
Key-Value Store Interface

The registry only needs to read and write one serialized blob under one key.
Any durable store that can do that implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Abstract base class for key-value stores.

    Implementations raise PersistenceError when the underlying storage
    cannot be read or written. The registry logs and contains any error
    raised here, wrapped or not.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored string, or None if nothing was stored under the key
        """
        pass

    @abstractmethod
    async def put(self, key: str, blob: str) -> None:
        """Store a blob under a key, replacing any previous value."""
        pass
