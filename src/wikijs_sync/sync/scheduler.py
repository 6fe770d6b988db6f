"""Periodic auto-sync.

``AutoSyncScheduler`` runs ``engine.sync()`` every ``interval`` minutes
on a background task until stopped.  A pass rejected because another
sync is running is logged and skipped; the next tick tries again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .engine import SyncEngine

logger = logging.getLogger(__name__)


class AutoSyncScheduler:
    """Trigger full sync passes at a fixed interval.

    Args:
        engine: Engine to drive.
        interval_minutes: Minutes between passes.
    """

    def __init__(self, engine: SyncEngine, interval_minutes: float) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._engine = engine
        self._interval = interval_minutes * 60
        self._task: asyncio.Task[Any] | None = None
        self._stop_event = asyncio.Event()
        self.passes = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self._interval
                )
            except asyncio.TimeoutError:
                await self._tick()

    async def _tick(self) -> None:
        result = await self._engine.sync()
        self.passes += 1
        if result.success:
            logger.info("Auto-sync: %s", result.message)
        else:
            logger.warning("Auto-sync skipped or failed: %s", result.message)

    def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(
            "Auto-sync every %.0f minutes", self._interval / 60
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Auto-sync stopped")
