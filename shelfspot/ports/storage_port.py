"""Storage port — abstract interface for local key-value persistence.

The bridge depends on this protocol, never on a specific storage engine.
"""

from __future__ import annotations

from typing import Protocol


class StoragePort(Protocol):
    """Async string key-value storage provided by the host platform."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...
