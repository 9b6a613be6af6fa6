"""Background task that periodically logs how many blobs the store holds"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from core.blob_service import count_blobs
from core.errors import BlobApiError
from core.pool import ClientPool

logger = logging.getLogger(__name__)

DEFAULT_MONITOR_INTERVAL = 30.0


def log_blob_count(count: int) -> None:
    logger.info("Number of blobs in store: %d", count)


class BlobCountMonitor:
    """Counts blobs every ``interval`` seconds using a handle from the shared pool.

    Uses the blocking acquire, so a tick waits while requests hold every handle.
    """

    def __init__(
        self,
        pool: ClientPool,
        interval: float = DEFAULT_MONITOR_INTERVAL,
        sink: Callable[[int], None] = log_blob_count,
    ) -> None:
        self._pool = pool
        self._interval = interval
        self._sink = sink
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> int | None:
        """Count once and emit. Returns None if counting failed."""
        async with self._pool.checkout(block=True) as store:
            try:
                count = await count_blobs(store)
            except BlobApiError as exc:
                logger.error("Failed to count blobs: %s", exc.message)
                return None
        self._sink(count)
        return count

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("Blob count monitor tick failed")

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run(), name="blob-count-monitor")
            logger.info("Blob count monitor started (interval %.1fs)", self._interval)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Blob count monitor stopped")
