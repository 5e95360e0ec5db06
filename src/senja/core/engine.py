"""Engine: one local-first data layer per process.

Owns the local store, change notifier, remote gateway and background
job tracker, and exposes one table object per record table. All state
lives on the instance so tests can build as many isolated engines as
they need.

Usage:
    engine = Engine(MemoryBackend())
    student = engine.students.save({"name": "Ana", "grade": "3"})
    unsubscribe = engine.students.subscribe(print)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import structlog

from senja.config.app_config import AppConfig, load_app_config
from senja.core.background import BackgroundTasks
from senja.core.backends import KeyValueBackend, SQLiteBackend
from senja.core.errors import UnknownTableError
from senja.core.gateway import RemoteGateway, SyncEvent
from senja.core.local_store import LocalStore
from senja.core.models import (
    ALL_TABLES,
    API_URL_KEY,
    MATERIALS,
    SETTINGS,
    STUDENTS,
    SUBMISSIONS,
    USERS,
    Material,
    Student,
    Submission,
    User,
)
from senja.core.notifier import ChangeNotifier
from senja.core.table import SessionStore, SettingsTable, Table, pick_settings

logger = structlog.get_logger(__name__)


class Engine:
    """Hybrid cache-and-sync engine.

    Args:
        backend: Durable key/value backend for the local cache
        transport: Optional httpx transport for the gateway (tests)
        config: Application config; loaded from disk when omitted
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        transport: httpx.AsyncBaseTransport | None = None,
        config: AppConfig | None = None,
    ):
        self.config = config or load_app_config()
        self.notifier = ChangeNotifier()
        self.store = LocalStore(backend, self.notifier)
        self.tasks = BackgroundTasks()
        self.gateway = RemoteGateway(
            self.get_api_url,
            transport=transport,
            timeout=self.config.remote.timeout,
        )

        self.users: Table[User] = self._table(USERS)
        self.students: Table[Student] = self._table(STUDENTS)
        self.materials: Table[Material] = self._table(MATERIALS)
        self.submissions: Table[Submission] = self._table(SUBMISSIONS)
        self.settings = SettingsTable(
            self.store,
            self.gateway,
            self.tasks,
            defaults=self.config.settings_defaults,
        )
        self.session = SessionStore(self.store)

    def _table(self, spec) -> Table[Any]:
        return Table(spec, self.store, self.notifier, self.gateway, self.tasks)

    def table(self, name: str) -> Table[Any]:
        """Look up a record table by name (settings excluded).

        Raises:
            UnknownTableError: If no such table exists.
        """
        tables = {
            "users": self.users,
            "students": self.students,
            "materials": self.materials,
            "submissions": self.submissions,
        }
        try:
            return tables[name]
        except KeyError:
            raise UnknownTableError(f"Unknown table: {name}") from None

    # -------------------------------------------------------------------------
    # Remote endpoint
    # -------------------------------------------------------------------------

    def get_api_url(self) -> str:
        """Stored endpoint, falling back to the configured one.

        A stored empty string means local mode, even when the config names
        an endpoint.
        """
        stored = self.store.get_text(API_URL_KEY)
        if stored is not None:
            return stored
        return self.config.remote.api_url or ""

    def has_api_url(self) -> bool:
        return bool(self.get_api_url())

    def set_api_url(self, url: str) -> None:
        """Store a new endpoint and, if set, pull everything from it."""
        url = url.strip()
        self.store.set_text(API_URL_KEY, url)
        logger.info("engine.api_url_set", enabled=self.has_api_url())
        if url:
            self.tasks.spawn(self.sync_all_from_cloud(), label="sync-all")

    async def sync_all_from_cloud(self) -> dict[str, int]:
        """Pull every table from the remote, one after another.

        Non-empty remote tables overwrite the cache and notify subscribers;
        empty or failed fetches leave the cache untouched.

        Returns:
            Number of records applied per table name.
        """
        applied: dict[str, int] = {}
        for spec in ALL_TABLES:
            remote = await self.gateway.fetch(spec.name)
            if not remote:
                continue

            if spec is SETTINGS:
                server_settings = pick_settings(remote)
                if isinstance(server_settings, dict):
                    self.store.set_object(spec.key, server_settings, notify=True)
                    applied[spec.name] = 1
                continue

            self.store.set_table(spec.key, remote)
            applied[spec.name] = len(remote)

        logger.info("engine.synced_from_cloud", applied=applied)
        return applied

    # -------------------------------------------------------------------------
    # Misc
    # -------------------------------------------------------------------------

    def init_admin_user(self) -> User | None:
        """Seed the configured admin account into an empty users table.

        Returns:
            The seeded user, or None if users already exist.
        """
        if self.users.all():
            return None
        admin = self.users.save(self.config.admin.to_record())
        logger.info("engine.admin_seeded", user_id=admin["id"])
        return admin

    def on_sync(self, listener: Callable[[SyncEvent], None]) -> Callable[[], None]:
        """Observe gateway outcomes (diagnostics)."""
        return self.gateway.add_listener(listener)

    async def drain(self) -> None:
        """Wait for all outstanding background sync jobs."""
        await self.tasks.drain()


# Global engine instance
_engine: Engine | None = None


def build_engine(config: AppConfig | None = None) -> Engine:
    """Build an engine backed by the configured SQLite database."""
    config = config or load_app_config()
    backend = SQLiteBackend(Path(config.store.db_path))
    return Engine(backend, config=config)


def get_engine() -> Engine:
    """Get the global engine instance."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def set_engine(engine: Engine | None) -> None:
    """Replace the global engine (tests, embedding)."""
    global _engine
    _engine = engine


def reset_engine() -> None:
    """Reset the engine (for testing)."""
    global _engine
    _engine = None
