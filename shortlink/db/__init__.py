"""
Database module with abstraction layer.

- interface: DatabaseAdapter, the contract each backend implements
- sqlite_adapter: SQLite-specific implementation (default)
- session: engine/session factories and table creation for the key-value store
- models: the kv_store table
"""
