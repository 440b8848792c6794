"""Shared test fixtures for nearcache.

Provides a controllable clock, an in-memory store and cache service, sample
payloads, isolated config directories, and global output/logging resets.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest
from rich.logging import RichHandler

from nearcache.cache import CacheService
from nearcache.models import LocationContext
from nearcache.output import reset_output
from nearcache.store import MemoryStore


# Chittagong city centre.
HOME = (22.3569, 91.7832)

START_TIME = 1_700_000_000.0


class FakeClock:
    """Callable clock returning a settable number of seconds since the epoch."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``nearcache`` logger after every test.

    The OutputManager and the Rich logging handler cache references to
    sys.stdout/sys.stderr at creation time. When Typer's CliRunner
    redirects those streams and the test finishes, the cached references
    become stale. Resetting forces fresh ones on next use.
    """
    yield
    reset_output()
    logger = logging.getLogger("nearcache")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Isolated config directory
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect all XDG directories into *tmp_path* and clear nearcache env vars."""
    monkeypatch.setattr("nearcache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "NEARCACHE_BASE_URL",
        "NEARCACHE_TOKEN",
        "NEARCACHE_DISABLE_CACHE",
        "NEARCACHE_STORE_DIR",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def service(store: MemoryStore, clock: FakeClock) -> CacheService:
    """A cache service over an in-memory store with the built-in policies."""
    return CacheService(store, clock=clock)


@pytest.fixture
def here() -> LocationContext:
    return LocationContext.at(*HOME)


@pytest.fixture
def home_feed_data() -> dict[str, Any]:
    return {
        "banners": [{"id": 1, "title": "Eid offers", "image": "/banners/eid.jpg"}],
        "popular_nearby": [{"id": 7, "name": "Hill View Cafe", "distance_km": 0.4}],
        "trending": {"searches": ["biryani", "pharmacy"]},
    }


@pytest.fixture
def user_profile_data() -> dict[str, Any]:
    return {
        "id": 42,
        "name": "Rahim Uddin",
        "email": "rahim@example.com",
        "city": "Chittagong",
        "total_points": 120,
    }


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
