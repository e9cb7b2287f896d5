"""
Key-value stores for registry persistence.

- KeyValueStore: interface (get/put of one blob per key)
- MemoryKeyValueStore: in-process dict, for tests and the memory backend
- SQLKeyValueStore: kv_store table via SQLModel/SQLAlchemy
"""

from shortlink.storage.interface import KeyValueStore
from shortlink.storage.memory import MemoryKeyValueStore
from shortlink.storage.sql_store import SQLKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLKeyValueStore",
]
