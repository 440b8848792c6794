"""Exception hierarchy for nearcache.

All exceptions inherit from :class:`NearcacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`nearcache.exit_codes`.
The CLI entry point in :func:`nearcache.app.main` catches ``NearcacheError``
and exits with the matching code.

Inside the cache layer only :class:`InvalidUsageError` is ever raised to a
caller. :class:`CodecError` and :class:`StoreError` are raised by the lower
components and translated into cache misses by
:class:`~nearcache.cache.service.CacheService`.

Subclass hierarchy::

    NearcacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- CodecError          (exit 7)
    +-- StoreError          (exit 8)
    +-- ConfigError         (exit 1)
"""

from nearcache.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CODEC_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_STORE_ERROR,
)


class NearcacheError(Exception):
    """Base exception for all nearcache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(NearcacheError):
    """Raised when a caller misuses the API (unknown namespace, missing coordinates)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(NearcacheError):
    """Raised when the API answers 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(NearcacheError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(NearcacheError):
    """Raised on HTTP 5xx, unmapped 4xx, or a ``success: false`` envelope."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(NearcacheError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class CodecError(NearcacheError):
    """Raised when a persisted cache string is not valid JSON or has the wrong shape."""

    exit_code = EXIT_CODEC_ERROR


class StoreError(NearcacheError):
    """Raised when a durable store cannot be opened."""

    exit_code = EXIT_STORE_ERROR


class ConfigError(NearcacheError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
