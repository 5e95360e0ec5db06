"""Core data layer.

- models: record shapes, table definitions, storage keys
- backends: key/value persistence (memory, SQLite)
- local_store: typed, fail-closed access to the backend
- notifier: per-table change notification
- gateway: best-effort HTTP bridge to the spreadsheet API
- table: generic table engine, settings singleton, session
- engine: per-process composition of the above
"""

from senja.core.backends import MemoryBackend, SQLiteBackend
from senja.core.engine import Engine, get_engine, reset_engine, set_engine
from senja.core.errors import SenjaError, StorageError, UnknownTableError
from senja.core.gateway import RemoteGateway, SyncEvent

__all__ = [
    "Engine",
    "MemoryBackend",
    "RemoteGateway",
    "SQLiteBackend",
    "SenjaError",
    "StorageError",
    "SyncEvent",
    "UnknownTableError",
    "get_engine",
    "reset_engine",
    "set_engine",
]
