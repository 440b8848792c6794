"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for nearcache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.nearcache/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`; the durable cache store lives under
  :func:`get_store_dir`.
* **Global config** -- A single :class:`~nearcache.models.GlobalConfig`
  JSON file holding cache policies, API connection settings, and output
  preferences.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables and CLI flags over the config file.
* **Credential resolution** -- :func:`resolve_credential` reads the API
  bearer token from an env var, a file, or the literal value.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from nearcache.exceptions import ConfigError
from nearcache.models import GlobalConfig

_APP_NAME = "nearcache"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "NEARCACHE_BASE_URL"
ENV_TOKEN = "NEARCACHE_TOKEN"
ENV_DISABLE_CACHE = "NEARCACHE_DISABLE_CACHE"
ENV_STORE_DIR = "NEARCACHE_STORE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/nearcache/`` (default ``~/.config/nearcache/``).
    On macOS/Windows: ``~/.nearcache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/nearcache/`` (default ``~/.cache/nearcache/``).
    On macOS/Windows: ``~/.nearcache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_store_dir() -> Path:
    """Return the directory of the durable cache store.

    ``$NEARCACHE_STORE_DIR`` wins when set; otherwise ``<cache_dir>/store``.
    The directory is not created here; :class:`~nearcache.store.DiskStore`
    creates it on open.
    """
    override = os.environ.get(ENV_STORE_DIR, "")
    if override:
        return Path(override).expanduser()
    return get_cache_dir() / "store"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary."""
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~nearcache.models.GlobalConfig`, or a
        default instance when no file exists.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
    cli_no_cache: bool = False,
) -> GlobalConfig:
    """Resolve config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_format``, ``cli_no_cache``)
        2. Environment variables (``NEARCACHE_BASE_URL``,
           ``NEARCACHE_TOKEN``, ``NEARCACHE_DISABLE_CACHE``)
        3. User config (``~/.config/nearcache/config.json``)
        4. Defaults
    """
    config = load_global_config()

    env_base_url = os.environ.get(ENV_BASE_URL)
    if cli_base_url is not None:
        config.api.base_url = cli_base_url
    elif env_base_url:
        config.api.base_url = env_base_url

    if os.environ.get(ENV_TOKEN):
        config.api.token_source = f"env:{ENV_TOKEN}"

    if cli_no_cache or _env_flag(ENV_DISABLE_CACHE):
        config.cache.enabled = False

    if cli_format is not None:
        config.output.format = cli_format

    return config


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else -- used verbatim as the token

    Raises:
        ConfigError: If the env var is unset or the file cannot be read.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return source
