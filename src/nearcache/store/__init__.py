"""Durable key-value store adapters.

The cache service persists every namespace through a
:class:`DurableStore`: an async ``get`` / ``set`` / ``delete`` /
``delete_many`` primitive over string keys and string values that never
raises on storage faults.

Classes:
    :class:`DurableStore` -- the abstract contract.
    :class:`DiskStore` -- on-disk store backed by :mod:`diskcache`.
    :class:`MemoryStore` -- process-local dict store for ephemeral runs and tests.
"""

from nearcache.store.base import DurableStore
from nearcache.store.disk import DiskStore
from nearcache.store.memory import MemoryStore

__all__ = ["DurableStore", "DiskStore", "MemoryStore"]
