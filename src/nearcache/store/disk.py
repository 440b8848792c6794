"""On-disk durable store backed by :mod:`diskcache`.

Values live in a :class:`diskcache.Cache` directory (SQLite index plus
value files). :mod:`diskcache` is blocking, so every call is pushed onto a
worker thread with :func:`asyncio.to_thread` to keep the event loop free
while the disk is busy.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

import diskcache

from nearcache.exceptions import StoreError
from nearcache.store.base import DurableStore

logger = logging.getLogger(__name__)


class DiskStore(DurableStore):
    """Durable store persisting string values in a :class:`diskcache.Cache`.

    Args:
        directory: Directory for the cache files. Created if missing.

    Raises:
        StoreError: If the directory cannot be created or opened.

    Example::

        store = DiskStore("/tmp/nearcache/store")
        await store.set("cache_version", "1.0")
        assert await store.get("cache_version") == "1.0"
        store.close()
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        try:
            self._cache = diskcache.Cache(str(self._directory))
        except Exception as exc:
            raise StoreError(f"Cannot open store at {self._directory}: {exc}") from exc

    @property
    def directory(self) -> Path:
        """The directory holding the cache files."""
        return self._directory

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await asyncio.to_thread(self._cache.get, key)
        except Exception as exc:
            logger.warning("Store read failed for %s: %s", key, exc)
            return None
        if value is None:
            return None
        if not isinstance(value, str):
            logger.warning("Store value for %s is %s, not str", key, type(value).__name__)
            return None
        return value

    async def set(self, key: str, value: str) -> bool:
        try:
            return bool(await asyncio.to_thread(self._cache.set, key, value))
        except Exception as exc:
            logger.warning("Store write failed for %s: %s", key, exc)
            return False

    async def delete(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._cache.delete, key)
        except Exception as exc:
            logger.warning("Store delete failed for %s: %s", key, exc)
            return False
        return True

    async def delete_many(self, keys: Iterable[str]) -> bool:
        keys = list(keys)
        try:
            await asyncio.to_thread(self._delete_all, keys)
        except Exception as exc:
            logger.warning("Store delete failed for %s: %s", ", ".join(keys), exc)
            return False
        return True

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        self._cache.close()

    def __len__(self) -> int:
        return len(self._cache)

    def _delete_all(self, keys: list[str]) -> None:
        with self._cache.transact():
            for key in keys:
                self._cache.delete(key)
