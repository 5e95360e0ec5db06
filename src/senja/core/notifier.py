"""In-process change notification, one channel per storage key."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class _Registration:
    """One subscribe() call. Compared by identity, never by callback."""

    __slots__ = ("callback",)

    def __init__(self, callback: Callback):
        self.callback = callback


class ChangeNotifier:
    """Publish/subscribe registry delivering full snapshots.

    Every notify() reaches every registration active at that moment, in
    registration order. There is no batching and no deduplication: an
    unchanged snapshot is still delivered.
    """

    def __init__(self):
        self._channels: dict[str, list[_Registration]] = defaultdict(list)

    def subscribe(self, channel: str, callback: Callback) -> Unsubscribe:
        """Register ``callback`` on ``channel``.

        Returns:
            A function removing exactly this registration. Subscribing the
            same callback twice yields two independent registrations.
        """
        registration = _Registration(callback)
        self._channels[channel].append(registration)

        def unsubscribe() -> None:
            registrations = self._channels.get(channel, [])
            for i, existing in enumerate(registrations):
                if existing is registration:
                    del registrations[i]
                    logger.debug("notifier.unsubscribed", channel=channel)
                    return

        return unsubscribe

    def notify(self, channel: str, value: Any) -> None:
        """Deliver ``value`` to every callback registered on ``channel``."""
        # Snapshot so callbacks may (un)subscribe while being notified
        for registration in list(self._channels.get(channel, [])):
            registration.callback(value)

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, []))
