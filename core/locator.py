"""Blob keyspace and find-by-value lookup.

All blobs live under ``blob:<creation time in ns>``. Lookups by value are a
linear scan of one window of at most ``SCAN_LIMIT`` keys: blobs past the
first window cannot be found, updated, deleted or detected as duplicates.
"""

from __future__ import annotations

import logging
import time

from core.errors import UpstreamError
from core.kv_store import KVStore

logger = logging.getLogger(__name__)

BLOB_PREFIX = b"blob:"
# "~" sorts after every digit, so this bounds the whole blob keyspace
BLOB_PREFIX_END = b"blob:~"
SCAN_LIMIT = 100

_last_key_ns = 0


def new_blob_key(prefix: bytes = BLOB_PREFIX) -> bytes:
    """Key for a new blob; strictly increasing within this process."""
    global _last_key_ns
    now = max(time.time_ns(), _last_key_ns + 1)
    _last_key_ns = now
    return prefix + str(now).encode()


async def scan_keys(
    store: KVStore,
    prefix: bytes = BLOB_PREFIX,
    end: bytes = BLOB_PREFIX_END,
    limit: int = SCAN_LIMIT,
) -> list[bytes]:
    try:
        pairs = await store.scan(prefix, end, limit)
    except Exception as exc:
        logger.error("Failed to retrieve blobs: %s", exc)
        raise UpstreamError("Failed to retrieve blobs") from exc
    return [key for key, _ in pairs]


async def fetch_value(store: KVStore, key: bytes) -> bytes:
    """Read one key seen by a scan.

    A key deleted between the scan and this read counts as a failed fetch.
    """
    try:
        value = await store.get(key)
    except Exception as exc:
        logger.error("Failed to retrieve blob %r: %s", key, exc)
        raise UpstreamError("Failed to retrieve blob") from exc
    if value is None:
        logger.error("Blob %r vanished between scan and fetch", key)
        raise UpstreamError("Failed to retrieve blob")
    return value


async def find_key_by_value(
    store: KVStore,
    prefix: bytes,
    end: bytes,
    target: bytes,
) -> bytes | None:
    """First key in [prefix, end) whose value equals target, in scan order."""
    for key in await scan_keys(store, prefix, end):
        if await fetch_value(store, key) == target:
            return key
    return None
