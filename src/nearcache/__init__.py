"""nearcache -- location-aware response cache for a local-discovery client.

This package sits between the screens of a local-business discovery client
(home feed, user profile) and the network. For every request it decides
whether a previously fetched response may be reused, for how long, and when
a change in device location makes it stale before its TTL runs out.

Typical startup::

    from nearcache.cache import CacheService
    from nearcache.store import DiskStore

    service = CacheService(DiskStore("/tmp/nearcache"))
    preloaded = await service.startup()

Modules:
    models: Pydantic models shared across the package.
    namespaces: The closed set of cached resources and their policies.
    geo: Great-circle distance helpers.
    cache: Entry codec, memory tier, and the cache service.
    store: Durable key-value store adapters.
    client: HTTP client and read-fetch-write glue.
    config: XDG-aware configuration management.
    app: Typer application and CLI entry point.
"""

__version__ = "0.3.0"
