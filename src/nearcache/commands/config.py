"""Config commands -- view and modify global configuration.

Provides the ``nearcache config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~nearcache.models.GlobalConfig`): API base URL and token source,
output format, and per-namespace cache policies.
"""

from __future__ import annotations

import typer

from nearcache.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        nearcache config show
        nearcache --json config show
    """
    from nearcache.config import global_config_path, load_global_config
    from nearcache.exceptions import ConfigError

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config file: {global_config_path()}")
    format_response(config.model_dump(mode="json"))


def _coerce(current: object, value: str, key: str) -> object:
    """Coerce *value* to the type of the field's current value."""
    if value.lower() in ("null", "none"):
        return None
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g. 'api.base_url')."
    ),
    value: str = typer.Argument(help="Value to set ('null' clears optional keys)."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. Policy overrides live under
    ``cache.policies.<namespace>``; the namespace entry is created on first
    use, starting from the built-in policy.

    Example::

        nearcache config set api.base_url https://api.example.com
        nearcache config set cache.policies.home-feed.proximity_km 2.5
        nearcache config set cache.policies.user-profile.ttl_seconds null
    """
    from nearcache.config import load_global_config, save_global_config
    from nearcache.exceptions import ConfigError, InvalidUsageError
    from nearcache.models import GlobalConfig
    from nearcache.namespaces import CacheNamespace

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    data = config.model_dump(mode="json")

    keys = key.split(".")
    if len(keys) == 4 and keys[:2] == ["cache", "policies"]:
        policies = data["cache"]["policies"]
        if keys[2] not in policies:
            try:
                namespace = CacheNamespace.parse(keys[2])
            except InvalidUsageError as exc:
                error(str(exc))
                raise typer.Exit(code=exc.exit_code) from None
            keys[2] = namespace.value
            policies.setdefault(namespace.value, namespace.default_policy.model_dump(mode="json"))

    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(target[final_key], value, key)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except Exception as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults. Asks for confirmation unless ``--force``.

    Example::

        nearcache --force config reset
    """
    from nearcache.config import save_global_config
    from nearcache.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        if not typer.confirm("Reset all config to defaults?"):
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
