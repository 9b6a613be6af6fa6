"""Fixed-size pool of storage client handles.

A handle is owned either by the pool or by exactly one caller. Request
handlers use the non-blocking ``checkout()``; the background monitor uses
the blocking ``acquire()`` and competes with requests for the same handles.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from core.errors import PoolExhaustedError, PoolReleaseError
from core.kv_store import KVStore, StoreFactory

logger = logging.getLogger(__name__)


class ClientPool:
    def __init__(self, handles: Iterable[KVStore]) -> None:
        self._owned: dict[int, KVStore] = {id(h): h for h in handles}
        self._checked_out: set[int] = set()
        self._idle: asyncio.Queue[KVStore] = asyncio.Queue()
        for handle in self._owned.values():
            self._idle.put_nowait(handle)
        self._size = len(self._owned)
        self._closed = False

    @classmethod
    async def create(cls, factory: StoreFactory, size: int) -> ClientPool:
        if size < 0:
            raise ValueError(f"Pool size must be >= 0, got {size}")
        handles: list[KVStore] = []
        try:
            for _ in range(size):
                handles.append(await factory())
        except Exception:
            logger.error("Failed to open client %d of %d", len(handles) + 1, size)
            for handle in handles:
                await _close_handle(handle)
            raise
        logger.info("Client pool ready with %d handle(s)", size)
        return cls(handles)

    @property
    def size(self) -> int:
        return self._size

    @property
    def available(self) -> int:
        return self._idle.qsize()

    @property
    def in_use(self) -> int:
        return len(self._checked_out)

    def _take(self, handle: KVStore) -> KVStore:
        self._checked_out.add(id(handle))
        return handle

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire_nowait(self) -> KVStore:
        """Take a handle without waiting. Raises PoolExhaustedError if none is idle."""
        if self._closed:
            raise PoolExhaustedError("Internal server error")
        try:
            handle = self._idle.get_nowait()
        except asyncio.QueueEmpty:
            raise PoolExhaustedError("Internal server error") from None
        return self._take(handle)

    async def acquire(self, timeout: float | None = None) -> KVStore:
        """Wait for a handle. A zero-sized pool can never satisfy this and raises at once."""
        if self._size == 0 or self._closed:
            raise PoolExhaustedError("Internal server error")
        try:
            handle = await asyncio.wait_for(self._idle.get(), timeout)
        except TimeoutError:
            raise PoolExhaustedError("Internal server error") from None
        return self._take(handle)

    def release(self, handle: KVStore) -> None:
        key = id(handle)
        if key not in self._owned or self._owned[key] is not handle:
            raise PoolReleaseError("Handle does not belong to this pool")
        if key not in self._checked_out:
            raise PoolReleaseError("Handle released twice")
        self._checked_out.discard(key)
        self._idle.put_nowait(handle)

    @asynccontextmanager
    async def checkout(self, block: bool = False) -> AsyncIterator[KVStore]:
        """Hold a handle for the duration of the block; always released on exit."""
        handle = await self.acquire() if block else self.acquire_nowait()
        try:
            yield handle
        finally:
            self.release(handle)

    async def close(self) -> None:
        """Close every handle the pool owns. Later acquires fail as exhausted."""
        if self._closed:
            return
        self._closed = True
        if self._checked_out:
            logger.warning("Closing pool with %d handle(s) still checked out", len(self._checked_out))
        for handle in self._owned.values():
            await _close_handle(handle)
        logger.info("Client pool closed")


async def _close_handle(handle: KVStore) -> None:
    # close() is optional on handles; the in-memory store has nothing to free
    close = getattr(handle, "close", None)
    if close is None:
        return
    try:
        await close()
    except Exception as exc:
        logger.warning("Failed to close client handle: %s", exc)
