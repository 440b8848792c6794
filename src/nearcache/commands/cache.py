"""Cache commands -- inspect and manage the on-disk response cache.

Provides the ``nearcache cache`` sub-command group. Every command opens the
durable store under the cache directory (or ``--store-dir``), runs the
versioned reset, then one :class:`~nearcache.cache.CacheService` operation,
and closes the store again.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from nearcache.commands.common import (
    build_context,
    format_age,
    open_cache,
    parse_namespace,
)
from nearcache.geo import format_distance
from nearcache.models import LocationSource
from nearcache.namespaces import CacheNamespace
from nearcache.output import format_response, info, print_table, success, warning


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("info")
def cache_info(ctx: typer.Context) -> None:
    """Show what is cached for each namespace.

    Example::

        nearcache cache info
        nearcache --json cache info
    """
    service = open_cache(ctx)
    try:
        entries = asyncio.run(service.info())
    finally:
        service.close()

    rows: list[list[str]] = []
    for namespace, entry in entries.items():
        policy = service.policy(namespace)
        if entry.corrupt:
            state = "corrupt"
        elif entry.expired:
            state = "expired"
        else:
            state = "yes" if entry.cached else "no"
        rows.append([
            namespace.value,
            state,
            format_age(entry.age_seconds),
            str(entry.size_bytes) if entry.size_bytes is not None else "-",
            entry.expires_at.isoformat() if entry.expires_at else "-",
            f"{policy.ttl_seconds}s" if policy.ttl_seconds is not None else "never",
            format_distance(policy.proximity_km) if policy.proximity_km is not None else "-",
        ])
    print_table(
        ["namespace", "cached", "age", "bytes", "expires", "ttl", "proximity"],
        rows,
        title="Cache",
    )


@cache_app.command("show")
def cache_show(
    ctx: typer.Context,
    namespace: str = typer.Argument(help="Namespace: home-feed or user-profile."),
    lat: Optional[float] = typer.Option(None, "--lat", help="Current latitude."),
    lng: Optional[float] = typer.Option(None, "--lng", help="Current longitude."),
    source: LocationSource = typer.Option(
        LocationSource.GPS, "--source", help="Where the coordinates came from."
    ),
) -> None:
    """Read a namespace through its validity policy and print the payload.

    Exits with code 1 when the read is a miss. A miss caused by expiry or
    by the device having moved also removes the entry, exactly as a screen
    read would.

    Example::

        nearcache cache show user-profile
        nearcache cache show home-feed --lat 22.3569 --lng 91.7832
    """
    ns = parse_namespace(namespace)
    context = build_context(lat, lng, source)
    service = open_cache(ctx)
    try:
        lookup = asyncio.run(service.read(ns, context))
    finally:
        service.close()

    if not lookup.hit:
        detail = ""
        if lookup.distance_km is not None:
            detail = f" ({format_distance(lookup.distance_km)} from cached location)"
        warning(f"{ns.value}: {lookup.status.value}{detail}")
        raise typer.Exit(code=1)

    detail = f"age {format_age(lookup.age_seconds)}"
    if lookup.distance_km is not None:
        detail += f", {format_distance(lookup.distance_km)} from cached location"
    info(f"{ns.value}: hit ({detail})")
    format_response(lookup.payload.model_dump(mode="json"))


@cache_app.command("invalidate")
def cache_invalidate(
    ctx: typer.Context,
    namespace: str = typer.Argument(help="Namespace to drop."),
) -> None:
    """Drop one namespace so the next load goes to the network.

    Example::

        nearcache cache invalidate home-feed
    """
    ns = parse_namespace(namespace)
    service = open_cache(ctx)
    try:
        asyncio.run(service.invalidate(ns))
    finally:
        service.close()
    success(f"Invalidated {ns.value}")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Drop every namespace. Asks for confirmation unless ``--force``.

    Example::

        nearcache --force cache clear
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        if not typer.confirm("Clear all cached data?"):
            info("Cancelled.")
            raise typer.Exit()

    service = open_cache(ctx)
    try:
        asyncio.run(service.clear_all())
    finally:
        service.close()
    success("Cache cleared.")


@cache_app.command("preload")
def cache_preload(ctx: typer.Context) -> None:
    """Run the startup sequence: version check, then preload every namespace.

    Prints the namespaces that loaded. Payloads are not validated against
    their policies, so stale entries are listed too.
    """
    service = open_cache(ctx, check_version=False)

    async def _startup() -> tuple[bool, dict]:
        was_reset = await service.reset_all_if_version_mismatched()
        return was_reset, await service.preload_all()

    try:
        was_reset, loaded = asyncio.run(_startup())
    finally:
        service.close()

    if was_reset:
        info("Cache format version changed; all entries were cleared.")
    rows = [[ns.value, "yes" if ns in loaded else "no"] for ns in CacheNamespace]
    print_table(["namespace", "loaded"], rows, title="Preload")


@cache_app.command("reset")
def cache_reset(ctx: typer.Context) -> None:
    """Clear everything if the stored cache-format version is outdated.

    Example::

        nearcache cache reset
    """
    service = open_cache(ctx, check_version=False)
    try:
        was_reset = asyncio.run(service.reset_all_if_version_mismatched())
    finally:
        service.close()
    if was_reset:
        success("Cache format version changed; all entries were cleared.")
    else:
        info("Cache format version is current; nothing to do.")
