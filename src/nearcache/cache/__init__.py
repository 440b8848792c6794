"""Two-tier response caching for nearcache.

This package provides :class:`CacheService`, the policy-aware cache that
sits between the client's screens and the network, together with its
building blocks: :class:`EntryCodec` (records to and from JSON strings) and
:class:`MemoryTier` (decoded records kept for the life of the process).

The durable half of the cache is any :class:`~nearcache.store.DurableStore`;
policies come from :class:`~nearcache.namespaces.CacheNamespace` and may be
overridden through :class:`~nearcache.models.CacheConfig`.
"""

from nearcache.cache.codec import EntryCodec
from nearcache.cache.memory import MemoryTier
from nearcache.cache.service import CacheLookup, CacheService, EntryInfo, LookupStatus

__all__ = [
    "CacheLookup",
    "CacheService",
    "EntryCodec",
    "EntryInfo",
    "LookupStatus",
    "MemoryTier",
]
