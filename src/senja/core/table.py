"""Table engine: optimistic local CRUD with background remote mirroring.

Every mutation completes locally (persist + notify) before returning and
then schedules its remote mirror. Subscriptions replay the local cache
at once and reconcile with a remote snapshot in the background,
last-fetch-wins.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar, cast

import structlog

from senja.core.background import BackgroundTasks
from senja.core.gateway import RemoteGateway
from senja.core.ids import generate_bulk_id, generate_id
from senja.core.local_store import LocalStore, serialize
from senja.core.models import SESSION_KEY, SETTINGS, SETTINGS_ID, Record, SyncAction, TableSpec
from senja.core.notifier import ChangeNotifier, Unsubscribe

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=Record)


class Table(Generic[RecordT]):
    """Generic CRUD over one named table."""

    def __init__(
        self,
        spec: TableSpec,
        store: LocalStore,
        notifier: ChangeNotifier,
        gateway: RemoteGateway,
        tasks: BackgroundTasks,
    ):
        self.spec = spec
        self.store = store
        self.notifier = notifier
        self.gateway = gateway
        self.tasks = tasks

    @property
    def name(self) -> str:
        return self.spec.name

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def all(self) -> list[RecordT]:
        """Current cached contents."""
        return cast("list[RecordT]", self.store.get_table(self.spec.key))

    def get(self, record_id: str) -> RecordT | None:
        for record in self.all():
            if record.get("id") == record_id:
                return record
        return None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _mirror(self, action: SyncAction, payload: dict[str, Any]) -> None:
        if not self.gateway.enabled:
            return
        self.tasks.spawn(
            self.gateway.send(action, self.spec.name, payload),
            label=f"{action}-{self.spec.name}",
        )

    def save(self, record: Mapping[str, Any]) -> RecordT:
        """Insert or replace a record.

        An id already in the table replaces that entry in place. An id not
        in the table is kept as-is and appended. A missing id is generated.

        Returns:
            The stored record, carrying its id.
        """
        records = self.store.get_table(self.spec.key)
        item = dict(record)
        action: SyncAction = "create"

        record_id = item.get("id")
        if record_id:
            for i, existing in enumerate(records):
                if existing.get("id") == record_id:
                    records[i] = item
                    action = "update"
                    break
            else:
                records.append(item)
        else:
            item["id"] = generate_id(self.spec.id_prefix)
            records.append(item)

        self.store.set_table(self.spec.key, records)
        logger.info("table.saved", table=self.spec.name, record_id=item["id"], action=action)

        self._mirror(action, item)
        return cast(RecordT, item)

    def delete(self, record_id: str) -> bool:
        """Remove a record by id.

        Deleting an absent id still rewrites and notifies, and is not an
        error.

        Returns:
            True if a record was removed.
        """
        records = self.store.get_table(self.spec.key)
        remaining = [r for r in records if r.get("id") != record_id]
        removed = len(remaining) != len(records)

        self.store.set_table(self.spec.key, remaining)
        logger.info("table.deleted", table=self.spec.name, record_id=record_id, removed=removed)

        self._mirror("delete", {"id": record_id})
        return removed

    def bulk_import(self, records: Iterable[Mapping[str, Any]]) -> list[RecordT]:
        """Append many new records in a single local write.

        Every record gets a fresh id, replacing any it carried. Subscribers
        see one notification for the whole batch; the remote receives one
        create per record, sent one after another.
        """
        prepared = [
            {**record, "id": generate_bulk_id(self.spec.id_prefix, i)}
            for i, record in enumerate(records)
        ]
        combined = self.store.get_table(self.spec.key) + prepared
        self.store.set_table(self.spec.key, combined)
        logger.info("table.bulk_imported", table=self.spec.name, count=len(prepared))

        if self.gateway.enabled and prepared:
            self.tasks.spawn(self._send_creates(prepared), label=f"import-{self.spec.name}")
        return cast("list[RecordT]", prepared)

    async def _send_creates(self, records: list[dict[str, Any]]) -> None:
        for record in records:
            await self.gateway.send("create", self.spec.name, record)

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Callable[[list[RecordT]], None]) -> Unsubscribe:
        """Watch the table.

        ``callback`` is called immediately with the cached contents, on
        every later local write, and once more if a background remote
        fetch brings back different, non-empty contents.
        """
        unsubscribe = self.notifier.subscribe(self.spec.key, callback)
        try:
            callback(self.all())
        except Exception:
            unsubscribe()
            raise

        if self.gateway.enabled:
            self.tasks.spawn(self._reconcile(callback), label=f"fetch-{self.spec.name}")
        return unsubscribe

    async def _reconcile(self, callback: Callable[[list[RecordT]], None]) -> None:
        remote = await self.gateway.fetch(self.spec.name)
        if not remote:
            return

        cached = self.store.get_raw(self.spec.key)
        if cached == serialize(remote):
            return

        # Remote snapshot wins; only the subscribing callback is told
        self.store.set_table(self.spec.key, remote, notify=False)
        logger.info("table.reconciled", table=self.spec.name, count=len(remote))
        callback(cast("list[RecordT]", remote))


def pick_settings(records: list[dict[str, Any]]) -> dict[str, Any] | None:
    """The singleton settings row from a remote snapshot."""
    for record in records:
        if record.get("id") == SETTINGS_ID:
            return record
    return records[0] if records else None


class SettingsTable:
    """Singleton settings record stored as one JSON object."""

    def __init__(
        self,
        store: LocalStore,
        gateway: RemoteGateway,
        tasks: BackgroundTasks,
        defaults: Mapping[str, Any] | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.tasks = tasks
        self.defaults = dict(defaults or {})

    def get(self) -> dict[str, Any]:
        saved = self.store.get_object(SETTINGS.key)
        return saved if saved is not None else dict(self.defaults)

    def save(self, settings: Mapping[str, Any]) -> dict[str, Any]:
        """Overwrite the settings. The id is always forced to the singleton id."""
        payload = {**settings, "id": SETTINGS_ID}
        self.store.set_object(SETTINGS.key, payload, notify=True)
        logger.info("settings.saved")

        if self.gateway.enabled:
            self.tasks.spawn(
                self.gateway.send("update", SETTINGS.name, payload), label="update-settings"
            )
        return payload

    def subscribe(self, callback: Callable[[dict[str, Any]], None]) -> Unsubscribe:
        unsubscribe = self.store.notifier.subscribe(SETTINGS.key, callback)
        try:
            callback(self.get())
        except Exception:
            unsubscribe()
            raise

        if self.gateway.enabled:
            self.tasks.spawn(self._reconcile(callback), label="fetch-settings")
        return unsubscribe

    async def _reconcile(self, callback: Callable[[dict[str, Any]], None]) -> None:
        remote = await self.gateway.fetch(SETTINGS.name)
        if not remote:
            return

        server_settings = pick_settings(remote)
        if not isinstance(server_settings, dict):
            return

        self.store.set_object(SETTINGS.key, server_settings)
        logger.info("settings.reconciled")
        callback(server_settings)


class SessionStore:
    """Current signed-in identity. Local only, no notifications."""

    def __init__(self, store: LocalStore):
        self.store = store

    def get(self) -> dict[str, Any] | None:
        return self.store.get_object(SESSION_KEY)

    def set(self, identity: Mapping[str, Any]) -> None:
        self.store.set_object(SESSION_KEY, dict(identity))

    def clear(self) -> None:
        self.store.remove(SESSION_KEY)
