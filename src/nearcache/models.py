"""Canonical Pydantic models shared across all nearcache modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Location models** -- supplied by the location-tracking collaborator:
    :class:`Coordinates`, :class:`LocationSource`, :class:`LocationContext`.

**Payload and record models** -- what is cached and how it is persisted:
    :class:`HomeFeed`, :class:`UserProfile`, :class:`CacheRecord`, and
    :class:`LocationTaggedRecord`. Records are generic over their payload
    type, so each namespace's payload shape is known statically and the
    entry codec validates it on the way back in.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`CachePolicy`, :class:`CacheConfig`, :class:`ApiConfig`,
:class:`OutputConfig`, and :class:`GlobalConfig`.

Payload models use ``extra="allow"`` so that fields the backend adds later
survive a cache round trip untouched.
"""

from __future__ import annotations

import enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


# --- Location ---


class Coordinates(BaseModel):
    """A WGS84 latitude/longitude pair in decimal degrees."""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class LocationSource(str, enum.Enum):
    """Where the current coordinates came from.

    Only informational; the proximity policy looks at the coordinates alone.
    """

    GPS = "gps"
    MANUAL = "manual"
    DEFAULT = "default"


class LocationContext(BaseModel):
    """Request context handed to the cache by the calling screen.

    ``coordinates`` is ``None`` when the device location is not known yet.
    Location-sensitive namespaces treat that as "cannot verify" and report
    a miss without discarding the stored record.

    Example::

        LocationContext.at(22.3569, 91.7832, source=LocationSource.MANUAL)
    """

    coordinates: Optional[Coordinates] = None
    source: LocationSource = LocationSource.GPS

    @classmethod
    def at(
        cls,
        latitude: float,
        longitude: float,
        source: LocationSource = LocationSource.GPS,
    ) -> LocationContext:
        """Build a context from a bare latitude/longitude pair."""
        return cls(
            coordinates=Coordinates(latitude=latitude, longitude=longitude),
            source=source,
        )


# --- Payloads ---


class HomeFeed(BaseModel):
    """The ``data`` object of the home endpoint.

    Section contents are kept as loosely typed dicts; the cache only needs
    the overall shape to be stable between writes and reads.
    """

    model_config = ConfigDict(extra="allow")

    banners: list[dict[str, Any]] = Field(default_factory=list)
    top_services: list[dict[str, Any]] = Field(default_factory=list)
    trending_businesses: list[dict[str, Any]] = Field(default_factory=list)
    popular_nearby: list[dict[str, Any]] = Field(default_factory=list)
    dynamic_sections: list[dict[str, Any]] = Field(default_factory=list)
    special_offers: list[dict[str, Any]] = Field(default_factory=list)
    featured_businesses: list[dict[str, Any]] = Field(default_factory=list)
    featured_attractions: list[dict[str, Any]] = Field(default_factory=list)
    popular_attractions: list[dict[str, Any]] = Field(default_factory=list)
    trending: Optional[dict[str, Any]] = None
    user_location: Optional[dict[str, Any]] = None
    top_national_brands: list[dict[str, Any]] = Field(default_factory=list)


class UserLevel(BaseModel):
    """Gamification level attached to a :class:`UserProfile`."""

    model_config = ConfigDict(extra="allow")

    level: int = 0
    level_name: str = ""
    level_description: str = ""
    total_score: float = 0
    progress_to_next_level: float = 0
    points_contribution: float = 0
    activity_contribution: float = 0
    trust_contribution: float = 0
    next_level_threshold: float = 0


class UserProfile(BaseModel):
    """The signed-in user as returned by the profile endpoint."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    city: Optional[str] = None
    profile_image: Optional[str] = None
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    trust_level: int = 0
    total_points: int = 0
    total_favorites: int = 0
    total_reviews: int = 0
    user_level: Optional[UserLevel] = None
    is_active: bool = True
    role: str = "user"
    email_verified_at: Optional[str] = None


# --- Cache records ---

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class CacheRecord(BaseModel, Generic[PayloadT]):
    """One cached response plus its bookkeeping timestamps.

    Timestamps are integer milliseconds since the Unix epoch. The persisted
    JSON uses the keys ``data``, ``timestamp`` and ``expiresAt``; Python code
    uses the field names.

    Attributes:
        payload: The cached response body.
        written_at: When the record was created.
        expires_at: ``written_at + ttl`` for namespaces with a TTL, ``None``
            for records that never expire by time.
    """

    model_config = ConfigDict(populate_by_name=True)

    payload: PayloadT = Field(alias="data")
    written_at: int = Field(alias="timestamp")
    expires_at: Optional[int] = Field(default=None, alias="expiresAt")

    def is_expired(self, now_ms: int) -> bool:
        """Return ``True`` once *now_ms* is past :attr:`expires_at`."""
        return self.expires_at is not None and now_ms > self.expires_at

    def age_seconds(self, now_ms: int) -> float:
        """Seconds elapsed since the record was written (never negative)."""
        return max(0, now_ms - self.written_at) / 1000.0


class LocationTaggedRecord(CacheRecord[PayloadT], Generic[PayloadT]):
    """A :class:`CacheRecord` anchored to the coordinates it was fetched for.

    Persisted with the extra key ``coordinates``.
    """

    anchor: Coordinates = Field(alias="coordinates")


# --- Configuration ---


class CachePolicy(BaseModel):
    """Validity policy for one namespace.

    ``ttl_seconds=None`` means records never expire by time;
    ``proximity_km=None`` disables distance-based invalidation.
    """

    ttl_seconds: Optional[int] = Field(default=None, ge=0)
    proximity_km: Optional[float] = Field(default=None, gt=0)


class CacheConfig(BaseModel):
    """Cache settings stored in :class:`GlobalConfig`.

    ``policies`` maps a namespace value (``"home-feed"``) to a replacement
    :class:`CachePolicy`; namespaces not listed keep their built-in policy.
    """

    enabled: bool = Field(default=True, description="Enable response caching")
    policies: dict[str, CachePolicy] = Field(default_factory=dict)


class ApiConfig(BaseModel):
    """Connection settings for the discovery API."""

    base_url: str = Field(default="http://127.0.0.1:8000")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(default=2, description="Max retry attempts")
    token_source: Optional[str] = Field(
        default=None,
        description="Bearer token source: env:VAR, file:/path, or a literal token",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/nearcache/config.json``.

    Loaded and saved by :func:`~nearcache.config.load_global_config` and
    :func:`~nearcache.config.save_global_config`. Environment variables
    override individual fields; see :func:`~nearcache.config.resolve_config`.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
