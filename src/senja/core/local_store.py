"""Local store adapter.

Turns a string key/value backend into typed reads and writes:
tables are JSON arrays, settings and session are JSON objects, the
remote URL is plain text. Reads fail closed: anything unreadable is
treated as absent instead of raising at the caller.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from senja.core.backends import KeyValueBackend
from senja.core.errors import StorageError
from senja.core.notifier import ChangeNotifier

logger = structlog.get_logger(__name__)


def serialize(value: Any) -> str:
    """Serialize a value the way it is persisted.

    Stable for equal inputs, so serialized forms can be compared.
    """
    return json.dumps(value, ensure_ascii=False)


class LocalStore:
    """Typed access to the durable key/value store."""

    def __init__(self, backend: KeyValueBackend, notifier: ChangeNotifier):
        self.backend = backend
        self.notifier = notifier

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    def get_raw(self, key: str) -> str | None:
        """Stored serialized text for ``key``, or None."""
        try:
            return self.backend.get(key)
        except StorageError as e:
            logger.warning("local_store.read_failed", key=key, error=str(e))
            return None

    def _load(self, key: str) -> Any:
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("local_store.corrupt_value", key=key, error=str(e))
            return None

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def get_table(self, key: str) -> list[dict[str, Any]]:
        """Deserialized array for ``key``; empty when absent or unreadable."""
        data = self._load(key)
        if not isinstance(data, list):
            if data is not None:
                logger.warning(
                    "local_store.unexpected_shape",
                    key=key,
                    expected="array",
                    got=type(data).__name__,
                )
            return []
        if not all(isinstance(record, dict) for record in data):
            logger.warning(
                "local_store.unexpected_shape",
                key=key,
                expected="array of objects",
                got="array",
            )
            return []
        return data

    def set_table(
        self,
        key: str,
        records: list[dict[str, Any]],
        notify: bool = True,
    ) -> None:
        """Persist the full array, replacing any prior value.

        Args:
            key: Storage key of the table
            records: Complete new contents
            notify: Broadcast the new contents to the key's subscribers

        Raises:
            StorageError: If the backend cannot persist the value.
        """
        self.backend.set(key, serialize(records))
        logger.debug("local_store.table_written", key=key, count=len(records))
        if notify:
            self.notifier.notify(key, records)

    # -------------------------------------------------------------------------
    # Single objects
    # -------------------------------------------------------------------------

    def get_object(self, key: str) -> dict[str, Any] | None:
        """Deserialized object for ``key``; None when absent or unreadable."""
        data = self._load(key)
        if not isinstance(data, dict):
            return None
        return data

    def set_object(self, key: str, value: dict[str, Any], notify: bool = False) -> None:
        self.backend.set(key, serialize(value))
        if notify:
            self.notifier.notify(key, value)

    # -------------------------------------------------------------------------
    # Plain text
    # -------------------------------------------------------------------------

    def get_text(self, key: str) -> str | None:
        return self.get_raw(key)

    def set_text(self, key: str, value: str) -> None:
        self.backend.set(key, value)

    def remove(self, key: str) -> None:
        self.backend.delete(key)
