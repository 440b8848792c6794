"""Fetch commands -- load cached resources, going to the API on a miss.

Provides the ``nearcache fetch`` sub-command group. Each command follows the
same pattern a client screen does: read the cache, fetch from the API on a
miss, write the fresh payload back.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from nearcache.commands.common import build_context, load_config, open_cache
from nearcache.exceptions import NearcacheError
from nearcache.models import GlobalConfig, LocationSource
from nearcache.output import error, format_response, info


fetch_app = typer.Typer(no_args_is_help=True)


def _resolve_token(config: GlobalConfig) -> Optional[str]:
    from nearcache.config import resolve_credential

    if config.api.token_source is None:
        return None
    try:
        return resolve_credential(config.api.token_source)
    except NearcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@fetch_app.command("home")
def fetch_home(
    ctx: typer.Context,
    lat: float = typer.Option(..., "--lat", help="Current latitude."),
    lng: float = typer.Option(..., "--lng", help="Current longitude."),
    radius: Optional[float] = typer.Option(None, "--radius", help="Search radius in km."),
    source: LocationSource = typer.Option(
        LocationSource.GPS, "--source", help="Where the coordinates came from."
    ),
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cache and refetch."),
) -> None:
    """Load the home feed for the given coordinates.

    Example::

        nearcache fetch home --lat 22.3569 --lng 91.7832
        nearcache fetch home --lat 22.3569 --lng 91.7832 --refresh
    """
    from nearcache.client import AsyncApiClient, load_home_feed

    config = load_config(ctx)
    context = build_context(lat, lng, source)
    token = _resolve_token(config)
    service = open_cache(ctx, config)

    async def _load():  # noqa: ANN202
        async with AsyncApiClient(config.api, token=token) as client:
            return await load_home_feed(service, client, context, radius, force=refresh)

    try:
        feed, from_cache = asyncio.run(_load())
    except NearcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        service.close()

    info("Home feed served from cache." if from_cache else "Home feed fetched from API.")
    format_response(feed.model_dump(mode="json"))


@fetch_app.command("profile")
def fetch_profile(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cache and refetch."),
) -> None:
    """Load the signed-in user's profile.

    Example::

        NEARCACHE_TOKEN=... nearcache fetch profile
    """
    from nearcache.client import AsyncApiClient, load_user_profile

    config = load_config(ctx)
    token = _resolve_token(config)
    service = open_cache(ctx, config)

    async def _load():  # noqa: ANN202
        async with AsyncApiClient(config.api, token=token) as client:
            return await load_user_profile(service, client, force=refresh)

    try:
        profile, from_cache = asyncio.run(_load())
    except NearcacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    finally:
        service.close()

    info("Profile served from cache." if from_cache else "Profile fetched from API.")
    format_response(profile.model_dump(mode="json"))
