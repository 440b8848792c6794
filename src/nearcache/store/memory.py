"""Process-local durable store for ephemeral runs and tests.

:class:`MemoryStore` keeps values in a plain dict. Setting
:attr:`MemoryStore.fail` makes every operation behave like a broken disk,
which is how the fail-open paths of the cache service are exercised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from nearcache.store.base import DurableStore

logger = logging.getLogger(__name__)


class MemoryStore(DurableStore):
    """Dict-backed :class:`~nearcache.store.base.DurableStore`.

    Args:
        initial: Optional starting contents, copied.
        fail: When ``True`` every call degrades as if storage were broken.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None, fail: bool = False) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.fail = fail

    async def get(self, key: str) -> Optional[str]:
        if self.fail:
            logger.warning("Store read failed for %s: storage unavailable", key)
            return None
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        if self.fail:
            logger.warning("Store write failed for %s: storage unavailable", key)
            return False
        self.data[key] = value
        return True

    async def delete(self, key: str) -> bool:
        if self.fail:
            logger.warning("Store delete failed for %s: storage unavailable", key)
            return False
        self.data.pop(key, None)
        return True

    async def delete_many(self, keys: Iterable[str]) -> bool:
        if self.fail:
            return False
        for key in keys:
            self.data.pop(key, None)
        return True
