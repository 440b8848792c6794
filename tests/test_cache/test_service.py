"""Tests for CacheService -- policies, tiers, fail-open behaviour, startup."""

from __future__ import annotations

import asyncio
import json
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

import pytest

from nearcache.cache import CacheService, LookupStatus
from nearcache.exceptions import InvalidUsageError
from nearcache.geo import EARTH_RADIUS_KM, distance_km
from nearcache.models import (
    CacheConfig,
    CachePolicy,
    HomeFeed,
    LocationContext,
    UserProfile,
)
from nearcache.namespaces import CACHE_FORMAT_VERSION, VERSION_KEY, CacheNamespace
from nearcache.store import DurableStore, MemoryStore

HOME_FEED = CacheNamespace.HOME_FEED
USER_PROFILE = CacheNamespace.USER_PROFILE

ACROSS_TOWN = LocationContext.at(22.3700, 91.8000)
DOWN_THE_ROAD = LocationContext.at(22.3610, 91.7832)


class BrokenStore(DurableStore):
    """A store that raises on every call, breaking the adapter contract."""

    async def get(self, key: str) -> Optional[str]:
        raise OSError("disk on fire")

    async def set(self, key: str, value: str) -> bool:
        raise OSError("disk on fire")

    async def delete(self, key: str) -> bool:
        raise OSError("disk on fire")

    async def delete_many(self, keys: Iterable[str]) -> bool:
        raise OSError("disk on fire")


# ------------------------------------------------------------------ #
# Read / write
# ------------------------------------------------------------------ #


class TestWriteThenRead:
    def test_hit_returns_payload(self, service: CacheService, here, home_feed_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            return await service.read(HOME_FEED, here)

        lookup = asyncio.run(scenario())
        assert lookup.hit
        assert lookup.status is LookupStatus.HIT
        assert lookup.payload == HomeFeed.model_validate(home_feed_data)
        assert lookup.age_seconds == 0
        assert lookup.distance_km == 0.0

    def test_write_persists_wire_format(self, service: CacheService, store: MemoryStore, here, home_feed_data) -> None:
        record = asyncio.run(service.write(HOME_FEED, home_feed_data, here))
        stored = json.loads(store.data["cache_home_data"])
        assert stored["timestamp"] == 1_700_000_000_000
        assert stored["expiresAt"] == 1_700_000_000_000 + 3600 * 1000
        assert stored["coordinates"] == {"latitude": 22.3569, "longitude": 91.7832}
        assert record.expires_at == stored["expiresAt"]

    def test_write_populates_memory_tier(self, service: CacheService, user_profile_data) -> None:
        asyncio.run(service.write(USER_PROFILE, user_profile_data))
        assert USER_PROFILE in service.memory_tier

    def test_read_from_durable_store_in_new_process(self, store: MemoryStore, clock, user_profile_data) -> None:
        """A fresh service over the same store sees what an earlier one wrote."""
        asyncio.run(CacheService(store, clock=clock).write(USER_PROFILE, user_profile_data))

        fresh = CacheService(store, clock=clock)
        assert USER_PROFILE not in fresh.memory_tier
        lookup = asyncio.run(fresh.read(USER_PROFILE))
        assert lookup.hit
        assert lookup.payload.email == "rahim@example.com"
        assert USER_PROFILE in fresh.memory_tier

    def test_age_reported(self, service: CacheService, clock, user_profile_data) -> None:
        asyncio.run(service.write(USER_PROFILE, user_profile_data))
        clock.advance(90)
        lookup = asyncio.run(service.read(USER_PROFILE))
        assert lookup.age_seconds == 90.0

    def test_model_payload_accepted(self, service: CacheService, user_profile_data) -> None:
        profile = UserProfile.model_validate(user_profile_data)
        record = asyncio.run(service.write(USER_PROFILE, profile))
        assert record.payload == profile

    def test_overwrite_replaces_record(self, service: CacheService, user_profile_data) -> None:
        async def scenario():
            await service.write(USER_PROFILE, user_profile_data)
            await service.write(USER_PROFILE, {**user_profile_data, "name": "Karim"})
            return await service.read(USER_PROFILE)

        assert asyncio.run(scenario()).payload.name == "Karim"

    def test_miss_when_nothing_stored(self, service: CacheService) -> None:
        lookup = asyncio.run(service.read(USER_PROFILE))
        assert not lookup.hit
        assert lookup.status is LookupStatus.MISS
        assert lookup.payload is None

    def test_profile_ignores_location(self, service: CacheService, user_profile_data) -> None:
        async def scenario():
            await service.write(USER_PROFILE, user_profile_data)
            return await service.read(USER_PROFILE, ACROSS_TOWN)

        lookup = asyncio.run(scenario())
        assert lookup.hit
        assert lookup.distance_km is None


class TestPayloadIsolation:
    def test_mutating_a_hit_does_not_change_the_cache(self, service: CacheService, user_profile_data) -> None:
        async def scenario():
            await service.write(USER_PROFILE, user_profile_data)
            first = await service.read(USER_PROFILE)
            first.payload.name = "Changed on screen"
            return await service.read(USER_PROFILE)

        assert asyncio.run(scenario()).payload.name == "Rahim Uddin"

    def test_mutating_after_write_does_not_change_the_cache(
        self, service: CacheService, store: MemoryStore, user_profile_data
    ) -> None:
        profile = UserProfile.model_validate(user_profile_data)

        async def scenario():
            await service.write(USER_PROFILE, profile)
            profile.name = "Changed after write"
            return await service.read(USER_PROFILE)

        lookup = asyncio.run(scenario())
        assert lookup.payload.name == "Rahim Uddin"
        assert json.loads(store.data["cache_user_profile"])["data"]["name"] == "Rahim Uddin"

    def test_nested_payload_is_copied(self, service: CacheService, here, home_feed_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            first = await service.read(HOME_FEED, here)
            first.payload.banners.clear()
            return await service.read(HOME_FEED, here)

        assert len(asyncio.run(scenario()).payload.banners) == 1

    def test_preloaded_payloads_are_copies(self, store: MemoryStore, clock, user_profile_data) -> None:
        asyncio.run(CacheService(store, clock=clock).write(USER_PROFILE, user_profile_data))
        service = CacheService(store, clock=clock)

        async def scenario():
            loaded = await service.preload_all()
            loaded[USER_PROFILE].name = "Changed after preload"
            return await service.read(USER_PROFILE)

        assert asyncio.run(scenario()).payload.name == "Rahim Uddin"


class TestWriteValidation:
    def test_invalid_payload_rejected(self, service: CacheService, store: MemoryStore) -> None:
        with pytest.raises(InvalidUsageError, match="UserProfile"):
            asyncio.run(service.write(USER_PROFILE, {"name": "no id or email"}))
        assert store.data == {}

    def test_location_tagged_write_needs_coordinates(self, service: CacheService, home_feed_data) -> None:
        with pytest.raises(InvalidUsageError, match="coordinates"):
            asyncio.run(service.write(HOME_FEED, home_feed_data))
        with pytest.raises(InvalidUsageError):
            asyncio.run(service.write(HOME_FEED, home_feed_data, LocationContext()))


# ------------------------------------------------------------------ #
# Validity policies
# ------------------------------------------------------------------ #


class TestTimePolicy:
    def test_hit_at_exact_expiry(self, service: CacheService, clock, user_profile_data) -> None:
        asyncio.run(service.write(USER_PROFILE, user_profile_data))
        clock.advance(7200)
        assert asyncio.run(service.read(USER_PROFILE)).hit

    def test_expired_after_ttl(self, service: CacheService, store: MemoryStore, clock, user_profile_data) -> None:
        asyncio.run(service.write(USER_PROFILE, user_profile_data))
        clock.advance(7201)
        lookup = asyncio.run(service.read(USER_PROFILE))
        assert lookup.status is LookupStatus.EXPIRED
        assert lookup.payload is None
        assert "cache_user_profile" not in store.data
        assert USER_PROFILE not in service.memory_tier

    def test_expiry_applies_to_memory_tier(self, service: CacheService, clock, here, home_feed_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            assert (await service.read(HOME_FEED, here)).hit
            clock.advance(3601)
            return await service.read(HOME_FEED, here)

        assert asyncio.run(scenario()).status is LookupStatus.EXPIRED

    def test_expired_then_miss(self, service: CacheService, clock, user_profile_data) -> None:
        async def scenario():
            await service.write(USER_PROFILE, user_profile_data)
            clock.advance(10_000)
            await service.read(USER_PROFILE)
            return await service.read(USER_PROFILE)

        assert asyncio.run(scenario()).status is LookupStatus.MISS

    def test_no_ttl_never_expires(self, store: MemoryStore, clock, user_profile_data) -> None:
        config = CacheConfig(policies={"user-profile": CachePolicy(ttl_seconds=None)})
        service = CacheService(store, config=config, clock=clock)
        record = asyncio.run(service.write(USER_PROFILE, user_profile_data))
        assert record.expires_at is None

        clock.advance(10 * 365 * 24 * 3600)
        assert asyncio.run(service.read(USER_PROFILE)).hit


class TestProximityPolicy:
    def test_moved_across_town_is_a_miss(self, service: CacheService, store: MemoryStore, here) -> None:
        """Written at one point, read about 2.3 km away: the entry is dropped."""

        async def scenario():
            await service.write(HOME_FEED, {"banners": [{"id": 1}]}, here)
            return await service.read(HOME_FEED, ACROSS_TOWN)

        lookup = asyncio.run(scenario())
        assert lookup.status is LookupStatus.MOVED
        assert lookup.payload is None
        assert lookup.distance_km == pytest.approx(2.26, abs=0.05)
        assert "cache_home_data" not in store.data
        assert HOME_FEED not in service.memory_tier

    def test_moved_overrides_remaining_ttl(self, service: CacheService, clock, here, home_feed_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            clock.advance(1)
            return await service.read(HOME_FEED, ACROSS_TOWN)

        assert asyncio.run(scenario()).status is LookupStatus.MOVED

    def test_small_move_is_a_hit(self, service: CacheService, here, home_feed_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            return await service.read(HOME_FEED, DOWN_THE_ROAD)

        lookup = asyncio.run(scenario())
        assert lookup.hit
        assert lookup.distance_km == pytest.approx(0.456, abs=0.005)

    def test_other_side_of_the_world_is_moved(self, service: CacheService, store: MemoryStore, home_feed_data) -> None:
        """Near-antipodal coordinates still evaluate to a distance, not an error."""

        async def scenario():
            await service.write(HOME_FEED, home_feed_data, LocationContext.at(-74.6, -180.0))
            return await service.read(HOME_FEED, LocationContext.at(74.6, 0.0))

        lookup = asyncio.run(scenario())
        assert lookup.status is LookupStatus.MOVED
        assert lookup.distance_km == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-6)
        assert "cache_home_data" not in store.data

    def test_exact_threshold_is_a_hit(self, store: MemoryStore, clock, here, home_feed_data) -> None:
        threshold = distance_km(here.coordinates, ACROSS_TOWN.coordinates)
        config = CacheConfig(policies={"home-feed": CachePolicy(ttl_seconds=3600, proximity_km=threshold)})
        service = CacheService(store, config=config, clock=clock)

        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            return await service.read(HOME_FEED, ACROSS_TOWN)

        assert asyncio.run(scenario()).hit

    def test_wider_threshold_from_config(self, store: MemoryStore, clock, here, home_feed_data) -> None:
        config = CacheConfig(policies={"home-feed": CachePolicy(ttl_seconds=3600, proximity_km=5.0)})
        service = CacheService(store, config=config, clock=clock)

        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            return await service.read(HOME_FEED, ACROSS_TOWN)

        assert asyncio.run(scenario()).hit

    def test_proximity_disabled_by_config(self, store: MemoryStore, clock, here, home_feed_data) -> None:
        config = CacheConfig(policies={"home-feed": CachePolicy(ttl_seconds=3600)})
        service = CacheService(store, config=config, clock=clock)

        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            return await service.read(HOME_FEED)

        lookup = asyncio.run(scenario())
        assert lookup.hit
        assert lookup.distance_km is None

    def test_unknown_location_keeps_entry(self, service: CacheService, store: MemoryStore, here, home_feed_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            first = await service.read(HOME_FEED, LocationContext())
            second = await service.read(HOME_FEED)
            third = await service.read(HOME_FEED, here)
            return first, second, third

        first, second, third = asyncio.run(scenario())
        assert first.status is LookupStatus.NO_LOCATION
        assert second.status is LookupStatus.NO_LOCATION
        assert third.hit
        assert "cache_home_data" in store.data

    def test_moved_is_logged(self, service: CacheService, here, home_feed_data, caplog) -> None:
        caplog.set_level(logging.INFO, logger="nearcache")

        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            await service.read(HOME_FEED, ACROSS_TOWN)

        asyncio.run(scenario())
        assert "Location changed by 2.2" in caplog.text


# ------------------------------------------------------------------ #
# Invalidation
# ------------------------------------------------------------------ #


class TestInvalidate:
    def test_invalidate_removes_both_tiers(self, service: CacheService, store: MemoryStore, user_profile_data) -> None:
        async def scenario():
            await service.write(USER_PROFILE, user_profile_data)
            await service.invalidate(USER_PROFILE)
            return await service.read(USER_PROFILE)

        assert asyncio.run(scenario()).status is LookupStatus.MISS
        assert "cache_user_profile" not in store.data
        assert USER_PROFILE not in service.memory_tier

    def test_invalidate_empty_is_noop(self, service: CacheService) -> None:
        asyncio.run(service.invalidate(HOME_FEED))

    def test_invalidate_leaves_other_namespaces(self, service: CacheService, here, home_feed_data, user_profile_data) -> None:
        async def scenario():
            await service.write(HOME_FEED, home_feed_data, here)
            await service.write(USER_PROFILE, user_profile_data)
            await service.invalidate(HOME_FEED)
            return await service.read(USER_PROFILE)

        assert asyncio.run(scenario()).hit

    def test_clear_all_keeps_version(self, service: CacheService, store: MemoryStore, here, home_feed_data, user_profile_data) -> None:
        async def scenario():
            await service.reset_all_if_version_mismatched()
            await service.write(HOME_FEED, home_feed_data, here)
            await service.write(USER_PROFILE, user_profile_data)
            await service.clear_all()

        asyncio.run(scenario())
        assert store.data == {VERSION_KEY: CACHE_FORMAT_VERSION}
        assert len(service.memory_tier) == 0


# ------------------------------------------------------------------ #
# Corrupt entries and storage faults
# ------------------------------------------------------------------ #


class TestCorruptEntries:
    def test_unparseable_entry_is_miss_and_removed(self, clock) -> None:
        store = MemoryStore({"cache_user_profile": "{not json"})
        service = CacheService(store, clock=clock)
        lookup = asyncio.run(service.read(USER_PROFILE))
        assert lookup.status is LookupStatus.CORRUPT
        assert not lookup.hit
        assert "cache_user_profile" not in store.data

    def test_old_payload_shape_is_miss(self, clock) -> None:
        text = json.dumps({"data": {"username": "old"}, "timestamp": 0, "expiresAt": None})
        store = MemoryStore({"cache_user_profile": text})
        service = CacheService(store, clock=clock)
        assert asyncio.run(service.read(USER_PROFILE)).status is LookupStatus.CORRUPT

    def test_corrupt_entry_logged(self, clock, caplog) -> None:
        store = MemoryStore({"cache_home_data": "garbage"})
        service = CacheService(store, clock=clock)
        with caplog.at_level(logging.WARNING, logger="nearcache"):
            asyncio.run(service.read(HOME_FEED, LocationContext.at(22.3569, 91.7832)))
        assert "Discarding unreadable home-feed entry" in caplog.text


class TestFailOpen:
    def test_failing_store_write_keeps_memory_copy(self, clock, user_profile_data) -> None:
        store = MemoryStore(fail=True)
        service = CacheService(store, clock=clock)

        async def scenario():
            record = await service.write(USER_PROFILE, user_profile_data)
            return record, await service.read(USER_PROFILE)

        record, lookup = asyncio.run(scenario())
        assert record.payload.id == 42
        assert lookup.hit
        assert store.data == {}

    def test_failing_store_read_is_miss(self, clock) -> None:
        store = MemoryStore({"cache_user_profile": "{}"}, fail=True)
        service = CacheService(store, clock=clock)
        assert asyncio.run(service.read(USER_PROFILE)).status is LookupStatus.MISS

    def test_failed_persist_is_logged(self, clock, user_profile_data, caplog) -> None:
        service = CacheService(MemoryStore(fail=True), clock=clock)
        with caplog.at_level(logging.WARNING, logger="nearcache"):
            asyncio.run(service.write(USER_PROFILE, user_profile_data))
        assert "keeping it in memory only" in caplog.text

    def test_raising_store_never_escapes(self, clock, here, home_feed_data, user_profile_data) -> None:
        service = CacheService(BrokenStore(), clock=clock)

        async def scenario():
            assert (await service.read(USER_PROFILE)).status is LookupStatus.MISS
            await service.write(HOME_FEED, home_feed_data, here)
            await service.write(USER_PROFILE, user_profile_data)
            hit = await service.read(HOME_FEED, here)
            await service.invalidate(HOME_FEED)
            await service.clear_all()
            reset = await service.reset_all_if_version_mismatched()
            loaded = await service.preload_all()
            info = await service.info()
            return hit, reset, loaded, info

        hit, reset, loaded, info = asyncio.run(scenario())
        assert hit.hit
        assert reset is True
        assert loaded == {}
        assert not any(entry.cached for entry in info.values())


# ------------------------------------------------------------------ #
# Disabled cache
# ------------------------------------------------------------------ #


class TestDisabled:
    def test_reads_miss_and_writes_are_dropped(self, store: MemoryStore, clock, user_profile_data) -> None:
        service = CacheService(store, config=CacheConfig(enabled=False), clock=clock)

        async def scenario():
            record = await service.write(USER_PROFILE, user_profile_data)
            return record, await service.read(USER_PROFILE)

        record, lookup = asyncio.run(scenario())
        assert record.payload.name == "Rahim Uddin"
        assert lookup.status is LookupStatus.MISS
        assert store.data == {}
        assert service.enabled is False

    def test_existing_entries_ignored(self, clock, user_profile_data) -> None:
        store = MemoryStore()
        asyncio.run(CacheService(store, clock=clock).write(USER_PROFILE, user_profile_data))
        disabled = CacheService(store, config=CacheConfig(enabled=False), clock=clock)
        assert not asyncio.run(disabled.read(USER_PROFILE)).hit
        assert asyncio.run(disabled.preload_all()) == {}


# ------------------------------------------------------------------ #
# Startup: version reset and preload
# ------------------------------------------------------------------ #


class TestVersionReset:
    def test_fresh_store_is_stamped(self, service: CacheService, store: MemoryStore) -> None:
        assert asyncio.run(service.reset_all_if_version_mismatched()) is True
        assert store.data == {VERSION_KEY: CACHE_FORMAT_VERSION}

    def test_matching_version_is_noop(self, service: CacheService, store: MemoryStore, user_profile_data) -> None:
        async def scenario():
            await service.reset_all_if_version_mismatched()
            await service.write(USER_PROFILE, user_profile_data)
            return await service.reset_all_if_version_mismatched()

        assert asyncio.run(scenario()) is False
        assert "cache_user_profile" in store.data

    def test_old_version_wipes_everything(self, clock, user_profile_data) -> None:
        store = MemoryStore({VERSION_KEY: "0.9"})
        old = CacheService(store, clock=clock, expected_version="0.9")
        asyncio.run(old.write(USER_PROFILE, user_profile_data))

        service = CacheService(store, clock=clock)
        assert asyncio.run(service.reset_all_if_version_mismatched()) is True
        assert store.data == {VERSION_KEY: CACHE_FORMAT_VERSION}
        assert asyncio.run(service.read(USER_PROFILE)).status is LookupStatus.MISS

    def test_reset_clears_memory_tier(self, service: CacheService, store: MemoryStore, user_profile_data) -> None:
        async def scenario():
            await service.write(USER_PROFILE, user_profile_data)
            store.data[VERSION_KEY] = "0.1"
            await service.reset_all_if_version_mismatched()

        asyncio.run(scenario())
        assert len(service.memory_tier) == 0


class TestPreload:
    def test_preload_loads_stored_namespaces(self, store: MemoryStore, clock, here, home_feed_data, user_profile_data) -> None:
        async def seed():
            writer = CacheService(store, clock=clock)
            await writer.reset_all_if_version_mismatched()
            await writer.write(HOME_FEED, home_feed_data, here)
            await writer.write(USER_PROFILE, user_profile_data)

        asyncio.run(seed())
        service = CacheService(store, clock=clock)
        loaded = asyncio.run(service.preload_all())
        assert set(loaded) == {HOME_FEED, USER_PROFILE}
        assert isinstance(loaded[HOME_FEED], HomeFeed)
        assert loaded[USER_PROFILE].id == 42
        assert len(service.memory_tier) == 2

    def test_preload_ignores_policies(self, store: MemoryStore, clock, user_profile_data) -> None:
        """Stale entries are still preloaded; the next read applies the policy."""
        asyncio.run(CacheService(store, clock=clock).write(USER_PROFILE, user_profile_data))
        clock.advance(100_000)

        service = CacheService(store, clock=clock)
        loaded = asyncio.run(service.preload_all())
        assert USER_PROFILE in loaded
        assert asyncio.run(service.read(USER_PROFILE)).status is LookupStatus.EXPIRED

    def test_preload_skips_corrupt(self, clock, user_profile_data) -> None:
        store = MemoryStore({"cache_home_data": "garbage"})
        asyncio.run(CacheService(store, clock=clock).write(USER_PROFILE, user_profile_data))
        loaded = asyncio.run(CacheService(store, clock=clock).preload_all())
        assert list(loaded) == [USER_PROFILE]

    def test_preload_empty(self, service: CacheService) -> None:
        assert asyncio.run(service.preload_all()) == {}

    def test_startup_resets_before_preloading(self, clock, user_profile_data) -> None:
        store = MemoryStore({VERSION_KEY: "0.9"})
        asyncio.run(CacheService(store, clock=clock).write(USER_PROFILE, user_profile_data))

        service = CacheService(store, clock=clock)
        assert asyncio.run(service.startup()) == {}
        assert store.data[VERSION_KEY] == CACHE_FORMAT_VERSION


# ------------------------------------------------------------------ #
# Introspection
# ------------------------------------------------------------------ #


class TestInfo:
    def test_empty(self, service: CacheService) -> None:
        info = asyncio.run(service.info())
        assert set(info) == {HOME_FEED, USER_PROFILE}
        assert not info[HOME_FEED].cached
        assert info[HOME_FEED].size_bytes is None

    def test_cached_entry(self, service: CacheService, store: MemoryStore, clock, user_profile_data) -> None:
        asyncio.run(service.write(USER_PROFILE, user_profile_data))
        clock.advance(30)
        entry = asyncio.run(service.info())[USER_PROFILE]
        assert entry.cached
        assert entry.age_seconds == 30.0
        assert entry.size_bytes == len(store.data["cache_user_profile"].encode("utf-8"))
        assert entry.expires_at == datetime.fromtimestamp(1_700_007_200, tz=timezone.utc)
        assert not entry.expired

    def test_expired_reported_not_removed(self, service: CacheService, store: MemoryStore, clock, user_profile_data) -> None:
        asyncio.run(service.write(USER_PROFILE, user_profile_data))
        clock.advance(8000)
        entry = asyncio.run(service.info())[USER_PROFILE]
        assert entry.expired
        assert "cache_user_profile" in store.data

    def test_corrupt_reported(self, clock) -> None:
        service = CacheService(MemoryStore({"cache_user_profile": "nope"}), clock=clock)
        entry = asyncio.run(service.info())[USER_PROFILE]
        assert entry.corrupt
        assert not entry.cached
        assert entry.size_bytes == 4


# ------------------------------------------------------------------ #
# Per-resource helpers
# ------------------------------------------------------------------ #


class TestResourceHelpers:
    def test_home_feed_helpers(self, service: CacheService, here, home_feed_data) -> None:
        async def scenario():
            await service.set_home_feed(home_feed_data, here)
            cached = await service.get_home_feed(here)
            moved = await service.get_home_feed(ACROSS_TOWN)
            return cached, moved

        cached, moved = asyncio.run(scenario())
        assert cached.banners[0]["title"] == "Eid offers"
        assert moved is None

    def test_force_refresh_home_feed(self, service: CacheService, here, home_feed_data) -> None:
        async def scenario():
            await service.set_home_feed(home_feed_data, here)
            await service.force_refresh_home_feed()
            return await service.get_home_feed(here)

        assert asyncio.run(scenario()) is None

    def test_clear_home_feed(self, service: CacheService, store: MemoryStore, here, home_feed_data) -> None:
        async def scenario():
            await service.set_home_feed(home_feed_data, here)
            await service.clear_home_feed()

        asyncio.run(scenario())
        assert "cache_home_data" not in store.data

    def test_user_profile_helpers(self, service: CacheService, user_profile_data) -> None:
        async def scenario():
            await service.set_user_profile(user_profile_data)
            cached = await service.get_user_profile()
            await service.clear_user_profile()
            return cached, await service.get_user_profile()

        cached, cleared = asyncio.run(scenario())
        assert cached.name == "Rahim Uddin"
        assert cleared is None

    def test_policy_accessor(self, store: MemoryStore) -> None:
        config = CacheConfig(policies={"user-profile": CachePolicy(ttl_seconds=60)})
        service = CacheService(store, config=config)
        assert service.policy(USER_PROFILE).ttl_seconds == 60
        assert service.policy(HOME_FEED).proximity_km == 1.0
