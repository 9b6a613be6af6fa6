"""Blob operations run against one checked-out store handle.

None of these retry: the first failed storage call ends the request. The
scan-then-write sequences are not atomic, so concurrent creates of the same
value can both succeed.
"""

from __future__ import annotations

import logging
import random
import time

from core.errors import (
    BlobConflictError,
    BlobNotFoundError,
    BlobValidationError,
    UpstreamError,
)
from core.kv_store import KVStore
from core.locator import (
    BLOB_PREFIX,
    BLOB_PREFIX_END,
    fetch_value,
    find_key_by_value,
    new_blob_key,
    scan_keys,
)

logger = logging.getLogger(__name__)


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _require(value: str | None, message: str) -> str:
    if not value:
        raise BlobValidationError(message)
    return value


async def count_blobs(store: KVStore) -> int:
    return len(await scan_keys(store))


async def list_blobs(store: KVStore) -> list[str]:
    keys = await scan_keys(store)
    if not keys:
        raise BlobNotFoundError("No blobs found")
    return [_decode(await fetch_value(store, key)) for key in keys]


async def random_blob(store: KVStore, rng: random.Random | None = None) -> str:
    keys = await scan_keys(store)
    if not keys:
        raise BlobNotFoundError("No blobs found")
    rng = rng or random.Random(time.time_ns())
    return _decode(await fetch_value(store, rng.choice(keys)))


async def create_blob(store: KVStore, blob: str | None) -> str:
    blob = _require(blob, "No blob provided")
    target = blob.encode()

    if await find_key_by_value(store, BLOB_PREFIX, BLOB_PREFIX_END, target) is not None:
        raise BlobConflictError("Blob already exists")

    key = new_blob_key()
    try:
        await store.put(key, target)
    except Exception as exc:
        logger.error("Failed to save blob under %r: %s", key, exc)
        raise UpstreamError("Failed to save blob") from exc

    logger.info("Saved blob under %r", key)
    return blob


async def update_blob(store: KVStore, old_blob: str | None, new_blob: str | None) -> str:
    old_blob = _require(old_blob, "No old blob provided")
    new_blob = _require(new_blob, "No new blob provided")

    key = await find_key_by_value(store, BLOB_PREFIX, BLOB_PREFIX_END, old_blob.encode())
    if key is None:
        raise BlobNotFoundError("Blob not found")

    try:
        await store.put(key, new_blob.encode())
    except Exception as exc:
        logger.error("Failed to update blob %r: %s", key, exc)
        raise UpstreamError("Failed to update blob") from exc

    logger.info("Updated blob %r", key)
    return new_blob


async def delete_blob(store: KVStore, blob: str | None) -> None:
    blob = _require(blob, "No blob provided")

    key = await find_key_by_value(store, BLOB_PREFIX, BLOB_PREFIX_END, blob.encode())
    if key is None:
        raise BlobNotFoundError("Blob not found")

    try:
        await store.delete(key)
    except Exception as exc:
        logger.error("Failed to delete blob %r: %s", key, exc)
        raise UpstreamError("Failed to delete blob") from exc

    logger.info("Deleted blob %r", key)
