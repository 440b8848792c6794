"""In-process mirror of decoded cache records.

The memory tier only saves repeated JSON decoding. It is empty at process
start, holds at most one record per namespace, and is never consulted as
the source of truth: every mutation goes through
:class:`~nearcache.cache.service.CacheService`, which keeps it in step
with the durable store.
"""

from __future__ import annotations

from typing import Optional

from nearcache.models import CacheRecord
from nearcache.namespaces import CacheNamespace


class MemoryTier:
    """Mapping from namespace to its decoded record."""

    def __init__(self) -> None:
        self._records: dict[CacheNamespace, CacheRecord] = {}

    def peek(self, namespace: CacheNamespace) -> Optional[CacheRecord]:
        return self._records.get(namespace)

    def put(self, namespace: CacheNamespace, record: CacheRecord) -> None:
        self._records[namespace] = record

    def evict(self, namespace: CacheNamespace) -> None:
        self._records.pop(namespace, None)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._records

    def __len__(self) -> int:
        return len(self._records)
