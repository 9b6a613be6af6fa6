"""Storage capability interface plus the TiKV and in-memory implementations."""

from __future__ import annotations

import bisect
from collections.abc import Awaitable, Callable
from typing import Protocol

from core.config import Settings


class KVStore(Protocol):
    """Raw key-value operations the blob API consumes.

    Keys and values are bytes. A missing key reads as ``None``; every other
    storage problem raises.
    """

    async def get(self, key: bytes) -> bytes | None:
        """Return the value stored under key, or None."""
        ...

    async def put(self, key: bytes, value: bytes) -> None:
        """Store value under key, overwriting any previous value."""
        ...

    async def delete(self, key: bytes) -> None:
        """Remove key. Deleting a missing key is not an error."""
        ...

    async def scan(self, start: bytes, end: bytes, limit: int) -> list[tuple[bytes, bytes]]:
        """Return up to limit (key, value) pairs with start <= key < end, ascending."""
        ...


StoreFactory = Callable[[], Awaitable[KVStore]]


class InMemoryKVStore:
    """Dict-backed store with sorted range scans.

    Handles created with the same ``data`` dict see each other's writes,
    which is how a pool of them stands in for one cluster.
    """

    def __init__(self, data: dict[bytes, bytes] | None = None) -> None:
        self._data = data if data is not None else {}

    async def get(self, key: bytes) -> bytes | None:
        return self._data.get(key)

    async def put(self, key: bytes, value: bytes) -> None:
        self._data[key] = value

    async def delete(self, key: bytes) -> None:
        self._data.pop(key, None)

    async def scan(self, start: bytes, end: bytes, limit: int) -> list[tuple[bytes, bytes]]:
        keys = sorted(self._data)
        lo = bisect.bisect_left(keys, start)
        hi = bisect.bisect_left(keys, end)
        return [(k, self._data[k]) for k in keys[lo:hi][:limit]]


class TiKVStore:
    """Adapter over the ``tikv-client`` asyncio RawClient."""

    def __init__(self, client) -> None:
        self._client = client

    @classmethod
    async def connect(cls, pd_addrs: list[str]) -> TiKVStore:
        # Imported here so the memory backend and the tests run without the
        # native client installed.
        from tikv_client.asyncio import RawClient

        client = await RawClient.connect(pd_addrs)
        return cls(client)

    async def get(self, key: bytes) -> bytes | None:
        value = await self._client.get(key)
        return bytes(value) if value is not None else None

    async def put(self, key: bytes, value: bytes) -> None:
        await self._client.put(key, value)

    async def delete(self, key: bytes) -> None:
        await self._client.delete(key)

    async def scan(self, start: bytes, end: bytes, limit: int) -> list[tuple[bytes, bytes]]:
        pairs = await self._client.scan(
            start, end=end, limit=limit, include_start=True, include_end=False
        )
        return [(bytes(k), bytes(v)) for k, v in pairs]

    async def close(self) -> None:
        # The native client has no close call; its connections go when it is dropped
        self._client = None


def open_store_factory(settings: Settings) -> StoreFactory:
    """Return an async callable opening one new handle for the configured backend."""
    backend = settings.STORE_BACKEND.lower()

    if backend == "tikv":
        pd_addrs = list(settings.PD_ADDRS)

        async def open_tikv() -> KVStore:
            return await TiKVStore.connect(pd_addrs)

        return open_tikv

    if backend == "memory":
        shared: dict[bytes, bytes] = {}

        async def open_memory() -> KVStore:
            return InMemoryKVStore(shared)

        return open_memory

    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")
