"""Tests for the background blob count monitor"""

from __future__ import annotations

import asyncio

import pytest

from core.kv_store import InMemoryKVStore
from core.pool import ClientPool
from worker.monitor import BlobCountMonitor


class FlakyScanStore(InMemoryKVStore):
    """Fails the first ``failures`` scans, then behaves."""

    def __init__(self, data=None, failures: int = 1):
        super().__init__(data)
        self.failures = failures

    async def scan(self, start, end, limit):
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("pd unreachable")
        return await super().scan(start, end, limit)


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.mark.asyncio
async def test_tick_emits_count():
    seen: list[int] = []
    pool = ClientPool([InMemoryKVStore({b"blob:1": b"a", b"blob:2": b"b"})])
    monitor = BlobCountMonitor(pool, interval=60, sink=seen.append)

    assert await monitor.tick() == 2
    assert seen == [2]
    assert pool.available == 1


@pytest.mark.asyncio
async def test_tick_failure_is_logged_not_raised(caplog):
    seen: list[int] = []
    pool = ClientPool([FlakyScanStore()])
    monitor = BlobCountMonitor(pool, interval=60, sink=seen.append)

    assert await monitor.tick() is None
    assert seen == []
    assert pool.available == 1
    assert "Failed to count blobs" in caplog.text


@pytest.mark.asyncio
async def test_tick_waits_for_free_handle():
    pool = ClientPool([InMemoryKVStore()])
    monitor = BlobCountMonitor(pool, interval=60, sink=lambda _: None)

    held = pool.acquire_nowait()
    tick = asyncio.create_task(monitor.tick())
    await asyncio.sleep(0.01)
    assert not tick.done()

    pool.release(held)
    assert await asyncio.wait_for(tick, 1) == 0
    assert pool.available == 1


@pytest.mark.asyncio
async def test_run_keeps_going_after_failures():
    seen: list[int] = []
    pool = ClientPool([FlakyScanStore({b"blob:1": b"a"}, failures=2)])
    monitor = BlobCountMonitor(pool, interval=0.01, sink=seen.append)

    monitor.start()
    assert monitor.running
    try:
        await _wait_for(lambda: len(seen) >= 2)
    finally:
        await monitor.stop()

    assert seen[:2] == [1, 1]
    assert not monitor.running
    assert pool.available == 1


@pytest.mark.asyncio
async def test_run_survives_zero_sized_pool(caplog):
    monitor = BlobCountMonitor(ClientPool([]), interval=0.01, sink=lambda _: None)

    monitor.start()
    try:
        await _wait_for(lambda: "tick failed" in caplog.text)
        assert monitor.running
    finally:
        await monitor.stop()


@pytest.mark.asyncio
async def test_start_is_idempotent():
    monitor = BlobCountMonitor(ClientPool([InMemoryKVStore()]), interval=60)
    first = monitor.start()
    assert monitor.start() is first
    await monitor.stop()
    await monitor.stop()
    assert not monitor.running
