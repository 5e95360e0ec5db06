"""Remote gateway to the spreadsheet API.

Writes are fire-and-forget: a failed send is logged and recorded as a
SyncEvent, never raised. Reads return None on any failure so callers can
tell "failed to ask" apart from "no data".

Wire protocol:
- write: POST {"action": ..., "table": ..., "data": ...}, body ignored
- read:  GET ?action=read&table=<name>, JSON array expected
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal

import httpx
import structlog

from senja.core.models import SyncAction

logger = structlog.get_logger(__name__)

HISTORY_LIMIT = 200


@dataclass
class SyncEvent:
    """Outcome of one gateway call, for diagnostics."""

    operation: Literal["send", "fetch"]
    table: str
    ok: bool
    action: str | None = None
    status_code: int | None = None
    error: str | None = None
    at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "table": self.table,
            "ok": self.ok,
            "action": self.action,
            "status_code": self.status_code,
            "error": self.error,
            "at": self.at,
        }


class RemoteGateway:
    """Best-effort HTTP bridge to the remote record store.

    Args:
        url_provider: Returns the current endpoint URL; empty disables the gateway
        transport: Optional httpx transport (tests use httpx.MockTransport)
        timeout: Seconds per request, None to never time out
    """

    def __init__(
        self,
        url_provider: Callable[[], str],
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self._url_provider = url_provider
        self._transport = transport
        self._timeout = timeout
        self._listeners: list[Callable[[SyncEvent], None]] = []
        self.history: deque[SyncEvent] = deque(maxlen=HISTORY_LIMIT)

    @property
    def url(self) -> str:
        return (self._url_provider() or "").strip()

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
        )

    def add_listener(self, listener: Callable[[SyncEvent], None]) -> Callable[[], None]:
        """Receive every SyncEvent. Returns a function removing the listener."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _record(self, event: SyncEvent) -> None:
        self.history.append(event)
        for listener in list(self._listeners):
            listener(event)

    async def send(self, action: SyncAction, table: str, payload: dict[str, Any]) -> None:
        """Mirror one mutation to the remote store.

        Never raises for transport problems; the outcome is only visible
        through logs and SyncEvents.
        """
        url = self.url
        if not url:
            return

        body = {"action": action, "table": table, "data": payload}
        try:
            async with self._client() as client:
                resp = await client.post(url, json=body)
        except httpx.HTTPError as e:
            logger.warning(
                "gateway.send_failed",
                action=action,
                table=table,
                record_id=payload.get("id"),
                error=str(e),
            )
            self._record(SyncEvent("send", table, ok=False, action=action, error=str(e)))
            return

        if not resp.is_success:
            logger.warning(
                "gateway.send_failed",
                action=action,
                table=table,
                record_id=payload.get("id"),
                status=resp.status_code,
            )
            self._record(
                SyncEvent(
                    "send",
                    table,
                    ok=False,
                    action=action,
                    status_code=resp.status_code,
                    error=f"HTTP {resp.status_code}",
                )
            )
            return

        logger.debug("gateway.sent", action=action, table=table, record_id=payload.get("id"))
        self._record(
            SyncEvent("send", table, ok=True, action=action, status_code=resp.status_code)
        )

    async def fetch(self, table: str) -> list[dict[str, Any]] | None:
        """Fetch the full remote snapshot of ``table``.

        Returns:
            The remote records, or None on transport error, non-2xx status,
            invalid JSON or a body that is not a JSON array.
        """
        url = self.url
        if not url:
            return None

        try:
            async with self._client() as client:
                resp = await client.get(url, params={"action": "read", "table": table})
        except httpx.HTTPError as e:
            logger.warning("gateway.fetch_failed", table=table, error=str(e))
            self._record(SyncEvent("fetch", table, ok=False, error=str(e)))
            return None

        if not resp.is_success:
            logger.warning("gateway.fetch_failed", table=table, status=resp.status_code)
            self._record(
                SyncEvent(
                    "fetch",
                    table,
                    ok=False,
                    status_code=resp.status_code,
                    error=f"HTTP {resp.status_code}",
                )
            )
            return None

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("gateway.fetch_invalid_json", table=table, error=str(e))
            self._record(
                SyncEvent("fetch", table, ok=False, status_code=resp.status_code, error=str(e))
            )
            return None

        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            logger.warning(
                "gateway.fetch_unexpected_shape", table=table, got=type(data).__name__
            )
            self._record(
                SyncEvent(
                    "fetch",
                    table,
                    ok=False,
                    status_code=resp.status_code,
                    error="response is not an array of records",
                )
            )
            return None

        logger.debug("gateway.fetched", table=table, count=len(data))
        self._record(SyncEvent("fetch", table, ok=True, status_code=resp.status_code))
        return data
