"""Key/value persistence backends for the local store.

Two implementations share the same minimal interface:

- MemoryBackend: process-local dict, used by tests and throwaway engines
- SQLiteBackend: durable across restarts, one row per key
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Protocol

import structlog

from senja.core.errors import StorageError
from senja.db.database import get_db, init_db

logger = structlog.get_logger(__name__)


class KeyValueBackend(Protocol):
    """Minimal string key/value persistence."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryBackend:
    """Dict-backed backend. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class SQLiteBackend:
    """SQLite-backed backend stored in the ``kv_store`` table.

    A short-lived connection is opened per operation, so the backend is
    safe to share across the whole process.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open local database {self.db_path}: {e}") from e

    def get(self, key: str) -> str | None:
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read '{key}': {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with get_db(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, datetime('now'))
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write '{key}': {e}") from e
        logger.debug("backend.key_written", key=key, size=len(value))

    def delete(self, key: str) -> None:
        try:
            with get_db(self.db_path) as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Cannot delete '{key}': {e}") from e
