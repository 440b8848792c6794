"""Helpers shared by the CLI sub-commands."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from nearcache.cache import CacheService
from nearcache.exceptions import NearcacheError
from nearcache.models import GlobalConfig, LocationContext, LocationSource
from nearcache.namespaces import CacheNamespace
from nearcache.output import error


def _obj(ctx: typer.Context) -> dict:
    return ctx.obj if isinstance(ctx.obj, dict) else {}


def load_config(ctx: typer.Context) -> GlobalConfig:
    """Resolve the effective config, honouring root-level CLI flags.

    Raises:
        typer.Exit: With code 1 when the config file is invalid.
    """
    from nearcache.config import resolve_config

    obj = _obj(ctx)
    try:
        return resolve_config(
            cli_base_url=obj.get("base_url"),
            cli_no_cache=obj.get("no_cache", False),
        )
    except NearcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def open_cache(
    ctx: typer.Context,
    config: Optional[GlobalConfig] = None,
    check_version: bool = True,
) -> CacheService:
    """Open the cache service over the on-disk store.

    Each CLI invocation is a process start, so the versioned reset runs here
    before the command touches any entry. Commands that run the reset
    themselves pass ``check_version=False``.

    Raises:
        typer.Exit: When the store directory cannot be opened.
    """
    from nearcache.config import get_store_dir
    from nearcache.store import DiskStore

    config = config or load_config(ctx)
    store_dir = _obj(ctx).get("store_dir")
    path = Path(store_dir) if store_dir else get_store_dir()
    try:
        store = DiskStore(path)
    except NearcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    service = CacheService(store, config.cache)
    if check_version:
        asyncio.run(service.reset_all_if_version_mismatched())
    return service


def parse_namespace(value: str) -> CacheNamespace:
    """Parse a namespace argument, exiting with code 2 on an unknown name."""
    try:
        return CacheNamespace.parse(value)
    except NearcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def build_context(
    lat: Optional[float],
    lng: Optional[float],
    source: LocationSource,
) -> LocationContext:
    """Build a location context from ``--lat`` / ``--lng``.

    Both or neither must be given.
    """
    if (lat is None) != (lng is None):
        error("--lat and --lng must be given together")
        raise typer.Exit(code=2)
    if lat is None or lng is None:
        return LocationContext(source=source)
    try:
        return LocationContext.at(lat, lng, source=source)
    except ValueError as exc:
        error(f"Invalid coordinates: {exc}")
        raise typer.Exit(code=2) from None


def format_age(seconds: Optional[float]) -> str:
    """``"42s"``, ``"12m"``, ``"3h"``, or ``"-"``."""
    if seconds is None:
        return "-"
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{seconds / 60:.0f}m"
    return f"{seconds / 3600:.1f}h"
