"""Background task runner for work deferred past the response.

Click increments and cache population are handed to ``submit()``, which
starts an independent asyncio task and returns immediately. The task is not
tied to the request, so a client disconnect does not cancel it. Failures are
logged and counted, never re-raised. Nothing is retried or persisted; work
still pending when the process dies is lost.

``drain()`` waits for outstanding tasks and is called on shutdown.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from shortlink.log import get_logger
from shortlink.metrics import BACKGROUND_TASKS_TOTAL, BACKGROUND_TASK_FAILURES_TOTAL

__all__ = ["BackgroundTaskRunner"]

logger = get_logger("background")


class BackgroundTaskRunner:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, kind: str, func: Callable[..., Awaitable[Any]], *args: Any) -> asyncio.Task:
        """Schedule ``func(*args)`` and return without waiting for it."""
        BACKGROUND_TASKS_TOTAL.labels(kind=kind).inc()
        task = asyncio.create_task(self._run(kind, func, *args), name=f"shortlink-{kind}")
        # The event loop only keeps weak references to tasks.
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for outstanding tasks; return how many were still running at timeout."""
        if not self._tasks:
            return 0
        _, still_pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_pending:
            logger.warning(f"{len(still_pending)} background tasks still pending after {timeout}s")
        return len(still_pending)

    async def _run(self, kind: str, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        try:
            await func(*args)
        except asyncio.CancelledError:
            logger.warning(f"Background {kind} task cancelled")
            raise
        except Exception:
            BACKGROUND_TASK_FAILURES_TOTAL.labels(kind=kind).inc()
            logger.exception(f"Background {kind} task failed")
