"""Abstract contract for durable key-value stores.

Implementations must never let a storage fault escape: reads degrade to
``None`` and mutations report ``False``, with the fault logged. The cache is
an optimisation and a broken disk must look like an empty cache, not like a
crash.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Optional


class DurableStore(ABC):
    """Async string-to-string store consumed by :class:`~nearcache.cache.service.CacheService`."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or ``None`` if absent or unreadable."""

    @abstractmethod
    async def set(self, key: str, value: str) -> bool:
        """Store *value* under *key*. Returns ``False`` if the write failed."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*. Deleting a missing key succeeds."""

    @abstractmethod
    async def delete_many(self, keys: Iterable[str]) -> bool:
        """Remove every key in *keys*. Returns ``False`` if any removal failed."""

    def close(self) -> None:
        """Release underlying resources. The default implementation does nothing."""
