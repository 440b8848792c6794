"""Cache service -- the single entry point screens use for cached responses.

:class:`CacheService` owns a :class:`~nearcache.cache.memory.MemoryTier`
and a reference to a :class:`~nearcache.store.base.DurableStore`. A read
checks the memory tier, falls back to the store through the
:class:`~nearcache.cache.codec.EntryCodec`, then applies the namespace's
validity policy:

* **Time** -- a record is stale once ``now > expires_at``.
* **Proximity** (location-tagged namespaces) -- a record is stale once the
  device is more than ``proximity_km`` from the coordinates the record was
  fetched for, whatever TTL remains.

Stale records are removed from both tiers on the read that discovers them;
there is no background sweeper.

Every store and codec fault degrades to a miss. The service never calls the
network itself: callers read, fetch on a miss, and write the fresh payload
back (see :mod:`nearcache.client.loader`).
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from nearcache.cache.codec import EntryCodec
from nearcache.cache.memory import MemoryTier
from nearcache.exceptions import CodecError, InvalidUsageError
from nearcache.geo import distance_km
from nearcache.models import (
    CacheConfig,
    CachePolicy,
    CacheRecord,
    HomeFeed,
    LocationContext,
    UserProfile,
)
from nearcache.namespaces import (
    CACHE_FORMAT_VERSION,
    VERSION_KEY,
    CacheNamespace,
    all_storage_keys,
)
from nearcache.store.base import DurableStore

logger = logging.getLogger(__name__)


class LookupStatus(str, enum.Enum):
    """Outcome of :meth:`CacheService.read`.

    Only ``HIT`` carries a payload. The other values all mean "fetch fresh
    data" to a caller and exist so the reason can be logged.
    """

    HIT = "hit"
    MISS = "miss"
    EXPIRED = "expired"
    MOVED = "moved"
    CORRUPT = "corrupt"
    NO_LOCATION = "no_location"


@dataclass
class CacheLookup:
    """Result of a cache read.

    Attributes:
        namespace: The namespace that was read.
        status: Why the read hit or missed.
        payload: The cached payload on a hit, otherwise ``None``.
        age_seconds: Seconds since the record was written (hits only).
        distance_km: Distance from the record's anchor to the current
            coordinates, when the proximity policy was evaluated.
    """

    namespace: CacheNamespace
    status: LookupStatus
    payload: Any = None
    age_seconds: Optional[float] = None
    distance_km: Optional[float] = None

    @property
    def hit(self) -> bool:
        return self.status is LookupStatus.HIT


@dataclass
class EntryInfo:
    """Durable-store view of one namespace, as reported by :meth:`CacheService.info`."""

    namespace: CacheNamespace
    cached: bool = False
    age_seconds: Optional[float] = None
    size_bytes: Optional[int] = None
    expires_at: Optional[datetime] = None
    expired: bool = False
    corrupt: bool = False


class CacheService:
    """Dual-tier, policy-aware cache for the client's fetched resources.

    Args:
        store: Durable store holding the authoritative copy of each record.
        config: Cache settings. ``enabled=False`` turns every read into a
            miss and every write into a no-op; ``policies`` overrides the
            built-in per-namespace policies.
        clock: Returns the current time in seconds since the epoch.
        expected_version: Cache-format version this code understands.

    Example::

        service = CacheService(MemoryStore())
        ctx = LocationContext.at(22.3569, 91.7832)
        await service.write(CacheNamespace.HOME_FEED, feed, ctx)
        lookup = await service.read(CacheNamespace.HOME_FEED, ctx)
        assert lookup.hit
    """

    def __init__(
        self,
        store: DurableStore,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
        expected_version: str = CACHE_FORMAT_VERSION,
    ) -> None:
        self._store = store
        self._config = config or CacheConfig()
        self._clock = clock
        self._expected_version = expected_version
        self._memory = MemoryTier()
        self._codecs = {ns: EntryCodec.for_namespace(ns) for ns in CacheNamespace}

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def policy(self, namespace: CacheNamespace) -> CachePolicy:
        """The effective policy for *namespace* under this service's config."""
        return namespace.policy(self._config)

    @property
    def memory_tier(self) -> MemoryTier:
        """The in-process tier. Exposed for inspection only."""
        return self._memory

    # ------------------------------------------------------------------ #
    # Core operations
    # ------------------------------------------------------------------ #

    async def read(
        self,
        namespace: CacheNamespace,
        context: Optional[LocationContext] = None,
    ) -> CacheLookup:
        """Return the cached payload for *namespace* if it is still valid.

        Args:
            namespace: The resource to read.
            context: The caller's current location. Required for a hit on
                location-tagged namespaces; ignored otherwise.

        Returns:
            A :class:`CacheLookup` whose payload is a copy the caller may
            modify. Never raises on store or decode faults.
        """
        if not self.enabled:
            return CacheLookup(namespace, LookupStatus.MISS)

        record, status = await self._load(namespace)
        if record is None:
            return CacheLookup(namespace, status)

        now = self._now_ms()
        if record.is_expired(now):
            logger.info("Cache expired for %s", namespace.value)
            await self._evict(namespace)
            return CacheLookup(namespace, LookupStatus.EXPIRED)

        distance: Optional[float] = None
        policy = self.policy(namespace)
        if namespace.location_tagged and policy.proximity_km is not None:
            current = context.coordinates if context is not None else None
            if current is None:
                logger.info("No current location, cannot validate %s", namespace.value)
                return CacheLookup(namespace, LookupStatus.NO_LOCATION)
            distance = distance_km(record.anchor, current)
            if distance > policy.proximity_km:
                logger.info(
                    "Location changed by %.2fkm, invalidating %s",
                    distance,
                    namespace.value,
                )
                await self._evict(namespace)
                return CacheLookup(namespace, LookupStatus.MOVED, distance_km=distance)

        age = record.age_seconds(now)
        logger.debug("Cache hit for %s (age %.0fs)", namespace.value, age)
        return CacheLookup(
            namespace,
            LookupStatus.HIT,
            payload=record.payload.model_copy(deep=True),
            age_seconds=age,
            distance_km=distance,
        )

    async def write(
        self,
        namespace: CacheNamespace,
        payload: BaseModel | dict[str, Any],
        context: Optional[LocationContext] = None,
    ) -> CacheRecord:
        """Replace the record for *namespace* with a freshly fetched payload.

        The record goes to the memory tier first, then to the durable store.
        A failed durable write is logged and dropped; the memory tier keeps
        the value for the rest of the process.

        Args:
            namespace: The resource being cached.
            payload: The fetched payload, as the namespace's model or a dict
                that validates into it.
            context: The location the payload was fetched for. Required for
                location-tagged namespaces.

        Returns:
            The record that was built.

        Raises:
            InvalidUsageError: If *payload* does not fit the namespace's
                model, or a location-tagged namespace is written without
                coordinates.
        """
        payload_type = namespace.payload_type
        if not isinstance(payload, payload_type):
            try:
                payload = payload_type.model_validate(payload)
            except ValidationError as exc:
                raise InvalidUsageError(
                    f"Payload for {namespace.value} is not a valid "
                    f"{payload_type.__name__}: {exc.error_count()} error(s)"
                ) from exc

        now = self._now_ms()
        policy = self.policy(namespace)
        fields: dict[str, Any] = {
            "payload": payload,
            "written_at": now,
            "expires_at": now + policy.ttl_seconds * 1000 if policy.ttl_seconds is not None else None,
        }
        if namespace.location_tagged:
            coordinates = context.coordinates if context is not None else None
            if coordinates is None:
                raise InvalidUsageError(
                    f"Writing {namespace.value} requires the current coordinates"
                )
            fields["anchor"] = coordinates

        record = namespace.record_type(**fields)
        if not self.enabled:
            return record

        # Callers may keep mutating the payload they passed in.
        self._memory.put(namespace, record.model_copy(deep=True))
        text = self._codecs[namespace].encode(record)
        if await self._store_set(namespace.storage_key, text):
            logger.debug(
                "Cache set for %s (%d bytes, expires %s)",
                namespace.value,
                len(text),
                _format_ms(record.expires_at),
            )
        else:
            logger.warning("Could not persist %s, keeping it in memory only", namespace.value)
        return record

    async def invalidate(self, namespace: CacheNamespace) -> None:
        """Drop *namespace* from both tiers. Safe to call when nothing is cached."""
        await self._evict(namespace)
        logger.debug("Cache cleared for %s", namespace.value)

    async def clear_all(self) -> None:
        """Drop every namespace from both tiers. The version marker is kept."""
        self._memory.clear()
        await self._store_delete_many(all_storage_keys())
        logger.info("All cache cleared")

    # ------------------------------------------------------------------ #
    # Startup
    # ------------------------------------------------------------------ #

    async def reset_all_if_version_mismatched(self) -> bool:
        """Wipe every namespace when the persisted format version is stale.

        Reads the version marker; if it is missing or differs from the
        expected version, every namespace key is deleted and the marker is
        rewritten. There is no partial migration.

        Returns:
            ``True`` if a reset happened.
        """
        stored = await self._store_get(VERSION_KEY)
        if stored == self._expected_version:
            return False

        logger.info(
            "Cache version %s does not match %s, clearing all cache",
            stored if stored is not None else "(none)",
            self._expected_version,
        )
        self._memory.clear()
        await self._store_delete_many(all_storage_keys())
        await self._store_set(VERSION_KEY, self._expected_version)
        return True

    async def preload_all(self) -> dict[CacheNamespace, Any]:
        """Load every stored namespace into the memory tier for instant first paint.

        Validity policies are *not* applied: the payloads may be stale, and
        the caller is expected to start a fresh fetch in parallel. A
        namespace that is missing or fails to decode is left out of the
        result.

        Returns:
            Mapping of namespace to payload for every namespace that loaded.
        """
        if not self.enabled:
            return {}

        namespaces = list(CacheNamespace)
        records = await asyncio.gather(*(self._preload_one(ns) for ns in namespaces))
        loaded = {
            ns: record.payload.model_copy(deep=True)
            for ns, record in zip(namespaces, records)
            if record is not None
        }
        logger.info(
            "Preloaded %d of %d cached namespaces", len(loaded), len(namespaces)
        )
        return loaded

    async def startup(self) -> dict[CacheNamespace, Any]:
        """Run the versioned reset, then :meth:`preload_all`."""
        await self.reset_all_if_version_mismatched()
        return await self.preload_all()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    async def info(self) -> dict[CacheNamespace, EntryInfo]:
        """Describe what the durable store holds for each namespace.

        Reads the store directly and applies no policy, so expired entries
        are reported with ``expired=True`` rather than removed.
        """
        now = self._now_ms()
        result: dict[CacheNamespace, EntryInfo] = {}
        for namespace in CacheNamespace:
            text = await self._store_get(namespace.storage_key)
            if text is None:
                result[namespace] = EntryInfo(namespace)
                continue
            size = len(text.encode("utf-8"))
            try:
                record = self._codecs[namespace].decode(text)
            except CodecError:
                result[namespace] = EntryInfo(namespace, size_bytes=size, corrupt=True)
                continue
            result[namespace] = EntryInfo(
                namespace,
                cached=True,
                age_seconds=record.age_seconds(now),
                size_bytes=size,
                expires_at=_to_datetime(record.expires_at),
                expired=record.is_expired(now),
            )
        return result

    def close(self) -> None:
        """Close the underlying store."""
        self._store.close()

    # ------------------------------------------------------------------ #
    # Per-resource helpers
    # ------------------------------------------------------------------ #

    async def get_home_feed(self, context: Optional[LocationContext]) -> Optional[HomeFeed]:
        """Return the cached home feed for *context*, or ``None``."""
        lookup = await self.read(CacheNamespace.HOME_FEED, context)
        return lookup.payload

    async def set_home_feed(self, feed: HomeFeed | dict[str, Any], context: LocationContext) -> None:
        await self.write(CacheNamespace.HOME_FEED, feed, context)

    async def clear_home_feed(self) -> None:
        await self.invalidate(CacheNamespace.HOME_FEED)

    async def force_refresh_home_feed(self) -> None:
        """Invalidate the home feed so the next load goes to the network."""
        await self.invalidate(CacheNamespace.HOME_FEED)

    async def get_user_profile(self) -> Optional[UserProfile]:
        lookup = await self.read(CacheNamespace.USER_PROFILE)
        return lookup.payload

    async def set_user_profile(self, profile: UserProfile | dict[str, Any]) -> None:
        await self.write(CacheNamespace.USER_PROFILE, profile)

    async def clear_user_profile(self) -> None:
        await self.invalidate(CacheNamespace.USER_PROFILE)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def _load(self, namespace: CacheNamespace) -> tuple[Optional[CacheRecord], LookupStatus]:
        """Memory tier first, then the durable store."""
        record = self._memory.peek(namespace)
        if record is not None:
            return record, LookupStatus.HIT

        text = await self._store_get(namespace.storage_key)
        if text is None:
            logger.debug("Cache miss for %s", namespace.value)
            return None, LookupStatus.MISS

        try:
            record = self._codecs[namespace].decode(text)
        except CodecError as exc:
            logger.warning("Discarding unreadable %s entry: %s", namespace.value, exc)
            await self._store_delete(namespace.storage_key)
            return None, LookupStatus.CORRUPT

        self._memory.put(namespace, record)
        return record, LookupStatus.HIT

    async def _preload_one(self, namespace: CacheNamespace) -> Optional[CacheRecord]:
        text = await self._store_get(namespace.storage_key)
        if text is None:
            return None
        try:
            record = self._codecs[namespace].decode(text)
        except CodecError as exc:
            logger.warning("Skipping %s during preload: %s", namespace.value, exc)
            return None
        self._memory.put(namespace, record)
        return record

    async def _evict(self, namespace: CacheNamespace) -> None:
        self._memory.evict(namespace)
        await self._store_delete(namespace.storage_key)

    # Fail-open wrappers around the store contract.

    async def _store_get(self, key: str) -> Optional[str]:
        try:
            return await self._store.get(key)
        except Exception as exc:
            logger.warning("Store read failed for %s: %s", key, exc)
            return None

    async def _store_set(self, key: str, value: str) -> bool:
        try:
            return await self._store.set(key, value)
        except Exception as exc:
            logger.warning("Store write failed for %s: %s", key, exc)
            return False

    async def _store_delete(self, key: str) -> bool:
        try:
            return await self._store.delete(key)
        except Exception as exc:
            logger.warning("Store delete failed for %s: %s", key, exc)
            return False

    async def _store_delete_many(self, keys: Iterable[str]) -> bool:
        keys = list(keys)
        try:
            return await self._store.delete_many(keys)
        except Exception as exc:
            logger.warning("Store delete failed for %s: %s", ", ".join(keys), exc)
            return False


def _to_datetime(ms: Optional[int]) -> Optional[datetime]:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def _format_ms(ms: Optional[int]) -> str:
    value = _to_datetime(ms)
    return value.isoformat() if value is not None else "never"
