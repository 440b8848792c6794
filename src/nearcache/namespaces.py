"""The closed set of cached resources and the policy each one carries.

Every cached resource is a member of :class:`CacheNamespace`. A member knows
its durable-store key, its payload model, and its built-in
:class:`~nearcache.models.CachePolicy`; adding a resource means adding one
enum member and one row to ``_NAMESPACE_TABLE``.

The reserved key :data:`VERSION_KEY` holds the cache-format version checked
at startup by :meth:`~nearcache.cache.service.CacheService.reset_all_if_version_mismatched`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from nearcache.exceptions import InvalidUsageError
from nearcache.models import (
    CacheConfig,
    CachePolicy,
    CacheRecord,
    HomeFeed,
    LocationTaggedRecord,
    UserProfile,
)

VERSION_KEY = "cache_version"
"""Durable-store key holding the persisted cache-format version."""

CACHE_FORMAT_VERSION = "1.0"
"""Version expected by this code. Bump it whenever a payload shape changes."""


class CacheNamespace(str, enum.Enum):
    """Logical cache resources.

    Values are the names used on the command line and in
    :attr:`~nearcache.models.CacheConfig.policies`.
    """

    HOME_FEED = "home-feed"
    USER_PROFILE = "user-profile"

    @property
    def storage_key(self) -> str:
        """The durable-store key this namespace is persisted under."""
        return _NAMESPACE_TABLE[self].storage_key

    @property
    def payload_type(self) -> type[BaseModel]:
        """The Pydantic model of this namespace's payload."""
        return _NAMESPACE_TABLE[self].payload_type

    @property
    def default_policy(self) -> CachePolicy:
        """The built-in policy, used when the config does not override it."""
        return _NAMESPACE_TABLE[self].policy

    @property
    def location_tagged(self) -> bool:
        """Whether records in this namespace carry an anchor coordinate."""
        return _NAMESPACE_TABLE[self].location_tagged

    @property
    def record_type(self) -> type[CacheRecord]:
        """The concrete record class persisted for this namespace."""
        payload = self.payload_type
        if self.location_tagged:
            return LocationTaggedRecord[payload]  # type: ignore[valid-type]
        return CacheRecord[payload]  # type: ignore[valid-type]

    def policy(self, config: Optional[CacheConfig] = None) -> CachePolicy:
        """Return the effective policy, honouring overrides in *config*."""
        if config is not None and self.value in config.policies:
            return config.policies[self.value]
        return self.default_policy

    @classmethod
    def parse(cls, value: str) -> CacheNamespace:
        """Look a namespace up by value, accepting ``_`` for ``-``.

        Raises:
            InvalidUsageError: If *value* names no namespace.
        """
        normalised = value.strip().lower().replace("_", "-")
        try:
            return cls(normalised)
        except ValueError:
            choices = ", ".join(ns.value for ns in cls)
            raise InvalidUsageError(
                f"Unknown cache namespace '{value}' (choose from: {choices})"
            ) from None


@dataclass(frozen=True)
class _NamespaceSpec:
    storage_key: str
    payload_type: type[BaseModel]
    policy: CachePolicy
    location_tagged: bool = False


_NAMESPACE_TABLE: dict[CacheNamespace, _NamespaceSpec] = {
    CacheNamespace.HOME_FEED: _NamespaceSpec(
        storage_key="cache_home_data",
        payload_type=HomeFeed,
        policy=CachePolicy(ttl_seconds=3600, proximity_km=1.0),
        location_tagged=True,
    ),
    CacheNamespace.USER_PROFILE: _NamespaceSpec(
        storage_key="cache_user_profile",
        payload_type=UserProfile,
        policy=CachePolicy(ttl_seconds=7200),
    ),
}


def all_storage_keys() -> list[str]:
    """Durable-store keys of every namespace, in declaration order."""
    return [ns.storage_key for ns in CacheNamespace]
