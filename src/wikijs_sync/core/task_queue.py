"""Strictly ordered, single-flight background task queue.

Tasks are zero-argument callables returning an awaitable.  They run one
at a time in FIFO order on the current event loop.  A failing task is
logged and dropped so the queue keeps draining.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Task = Callable[[], Awaitable[Any]]


class AsyncTaskQueue:
    """FIFO queue that drains its tasks sequentially."""

    def __init__(self) -> None:
        self._tasks: deque[Task] = deque()
        self._worker: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    def add(self, task: Task) -> None:
        """Enqueue *task* and start draining if the queue is idle.

        Must be called from a coroutine or callback running on the loop.
        """
        self._tasks.append(task)
        self._idle.clear()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(
                self._drain()
            )

    def size(self) -> int:
        """Number of tasks waiting (the running task is not counted)."""
        return len(self._tasks)

    def clear(self) -> None:
        """Drop every waiting task.  A task already running completes."""
        self._tasks.clear()

    async def join(self) -> None:
        """Wait until every queued task has run."""
        await self._idle.wait()

    async def _drain(self) -> None:
        try:
            while self._tasks:
                task = self._tasks.popleft()
                try:
                    await task()
                except Exception:
                    logger.exception("Queued task failed")
        finally:
            self._idle.set()
