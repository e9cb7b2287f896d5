"""In-process key-value store."""

from typing import Optional

from shortlink.storage.interface import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store.

    State lives as long as the instance, so sharing one instance between two
    registries simulates a process restart.
    """

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def put(self, key: str, blob: str) -> None:
        self._data[key] = blob
