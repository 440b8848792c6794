"""HTTP client and cache glue for nearcache.

Classes and functions:
    :class:`AsyncApiClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.
    :func:`load_cached` -- read, fetch on a miss, write back.
    :func:`load_home_feed`, :func:`load_user_profile` -- the same, bound
    to the two cached endpoints.

Example::

    from nearcache.client import AsyncApiClient, load_home_feed

    async with AsyncApiClient(config.api, token=token) as client:
        feed, from_cache = await load_home_feed(cache, client, context)
"""

from nearcache.client.async_client import AsyncApiClient
from nearcache.client.loader import load_cached, load_home_feed, load_user_profile

__all__ = ["AsyncApiClient", "load_cached", "load_home_feed", "load_user_profile"]
