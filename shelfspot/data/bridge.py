"""
ShelfSpot Client — Persistent Key-Value Bridge.

Thin async layer over a StoragePort shared by every store. Failures from the
storage engine are reported as PersistenceError, never swallowed here.

Writes to the same key are serialized through a per-key lock. asyncio.Lock
wakes waiters in FIFO order, so same-key writes land in call order.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from shelfspot.core.errors import PersistenceError

if TYPE_CHECKING:
    from shelfspot.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


class PersistentBridge:
    """Async get/set/remove over the platform key-value storage."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def get(self, key: str) -> str | None:
        try:
            return await self._storage.get_item(key)
        except Exception as exc:
            logger.error("Storage read failed for '%s': %s", key, exc)
            raise PersistenceError(f"Could not read '{key}' from storage") from exc

    async def set(self, key: str, value: str) -> None:
        async with self._lock_for(key):
            try:
                await self._storage.set_item(key, value)
            except Exception as exc:
                logger.error("Storage write failed for '%s': %s", key, exc)
                raise PersistenceError(f"Could not write '{key}' to storage") from exc

    async def remove(self, key: str) -> None:
        async with self._lock_for(key):
            try:
                await self._storage.remove_item(key)
            except Exception as exc:
                logger.error("Storage remove failed for '%s': %s", key, exc)
                raise PersistenceError(f"Could not remove '{key}' from storage") from exc

    async def get_json(self, key: str) -> Any | None:
        """Read and decode a JSON value. Corrupt blobs read as absent."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt JSON stored under '%s'", key)
            return None

    async def set_json(self, key: str, value: Any) -> None:
        await self.set(key, json.dumps(value))

    def scoped(self, owner: str, keys: set[str]) -> ScopedBridge:
        """Return a view that may only touch the given keys."""
        return ScopedBridge(self, owner, frozenset(keys))


class ScopedBridge:
    """Bridge view restricted to the keys one store owns."""

    def __init__(self, bridge: PersistentBridge, owner: str, keys: frozenset[str]) -> None:
        self._bridge = bridge
        self.owner = owner
        self.keys = keys

    def _check(self, key: str) -> None:
        if key not in self.keys:
            raise ValueError(f"{self.owner} does not own storage key {key!r}")

    async def get(self, key: str) -> str | None:
        self._check(key)
        return await self._bridge.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check(key)
        await self._bridge.set(key, value)

    async def remove(self, key: str) -> None:
        self._check(key)
        await self._bridge.remove(key)

    async def get_json(self, key: str) -> Any | None:
        self._check(key)
        return await self._bridge.get_json(key)

    async def set_json(self, key: str, value: Any) -> None:
        self._check(key)
        await self._bridge.set_json(key, value)
