"""Read-fetch-write glue between the cache service and the API client.

The cache service never calls the network. Callers follow one pattern:
read the namespace, and on a miss call a fetch producer and write its result
back. :func:`load_cached` is that pattern; :func:`load_home_feed` and
:func:`load_user_profile` bind it to the two cached endpoints.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

from pydantic import BaseModel

from nearcache.cache import CacheService
from nearcache.client.async_client import AsyncApiClient
from nearcache.exceptions import InvalidUsageError
from nearcache.models import HomeFeed, LocationContext, UserProfile
from nearcache.namespaces import CacheNamespace
from nearcache.output import get_output

PayloadT = TypeVar("PayloadT", bound=BaseModel)


async def load_cached(
    cache: CacheService,
    namespace: CacheNamespace,
    fetch: Callable[[], Awaitable[PayloadT]],
    context: Optional[LocationContext] = None,
    force: bool = False,
) -> tuple[PayloadT, bool]:
    """Return a cached payload or fetch, cache, and return a fresh one.

    Args:
        cache: The cache service.
        namespace: Which resource to load.
        fetch: Opaque producer of a fresh payload. Its errors propagate.
        context: The caller's location, passed to both read and write.
        force: Invalidate first so the fetch always runs.

    Returns:
        ``(payload, from_cache)``.
    """
    output = get_output()
    if force:
        await cache.invalidate(namespace)
    else:
        lookup = await cache.read(namespace, context)
        if lookup.hit:
            output.debug(f"{namespace.value}: cache hit, age {lookup.age_seconds:.0f}s")
            return lookup.payload, True
        output.debug(f"{namespace.value}: {lookup.status.value}, fetching")

    payload = await fetch()
    await cache.write(namespace, payload, context)
    return payload, False


async def load_home_feed(
    cache: CacheService,
    client: AsyncApiClient,
    context: LocationContext,
    radius_km: Optional[float] = None,
    force: bool = False,
) -> tuple[HomeFeed, bool]:
    """Load the home feed for *context*, preferring the cache.

    Raises:
        InvalidUsageError: If *context* has no coordinates.
    """
    coordinates = context.coordinates
    if coordinates is None:
        raise InvalidUsageError("The home feed needs the current coordinates")

    async def _fetch() -> HomeFeed:
        return await client.fetch_home_feed(coordinates, radius_km)

    return await load_cached(cache, CacheNamespace.HOME_FEED, _fetch, context, force)


async def load_user_profile(
    cache: CacheService,
    client: AsyncApiClient,
    force: bool = False,
) -> tuple[UserProfile, bool]:
    """Load the signed-in user's profile, preferring the cache."""
    return await load_cached(
        cache, CacheNamespace.USER_PROFILE, client.fetch_user_profile, force=force
    )
