"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~nearcache.exceptions.NearcacheError` subclass.
Shell wrappers can inspect the exit code of ``nearcache`` to tell a
rejected token from an unreachable API without parsing stderr.

Example::

    $ nearcache fetch profile
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the bearer token was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unknown namespace."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the credentials (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API returned a server error or an unsuccessful envelope."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CODEC_ERROR = 7
"""A persisted cache entry could not be decoded."""

EXIT_STORE_ERROR = 8
"""The durable store could not be opened."""
