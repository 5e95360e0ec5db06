"""Fire-and-forget background jobs on the running asyncio loop.

Callers never await the jobs they spawn. The tracker keeps a strong
reference until each job finishes so it cannot be garbage collected
mid-flight, and drain() lets tests, the CLI and shutdown wait for
outstanding sync work.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

logger = structlog.get_logger(__name__)


class BackgroundTasks:
    """Tracks in-flight background sync jobs."""

    def __init__(self):
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task[Any] | None:
        """Schedule ``coro`` without waiting for it.

        Returns:
            The scheduled task, or None when no event loop is running (the
            job is dropped and a warning logged).
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("background.no_event_loop", job=label)
            return None

        task = loop.create_task(coro, name=f"senja-{label}")
        self._tasks.add(task)

        def _cleanup(done: asyncio.Task[Any]) -> None:
            self._tasks.discard(done)
            if not done.cancelled() and done.exception() is not None:
                logger.error(
                    "background.job_failed", job=label, error=str(done.exception())
                )

        task.add_done_callback(_cleanup)
        return task

    async def drain(self) -> None:
        """Wait until every job, including jobs spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
