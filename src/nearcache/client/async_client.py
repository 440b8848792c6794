"""Asynchronous HTTP client for the discovery API.

This module provides :class:`AsyncApiClient`, a thin wrapper over
:class:`httpx.AsyncClient` that knows the two endpoints whose responses are
cached: the home feed and the signed-in user's profile. It injects the
bearer token, retries 5xx answers and network failures with exponential
backoff, maps error statuses onto the :mod:`nearcache.exceptions`
hierarchy, and unwraps the API's ``{"success": ..., "data": ...}`` envelope
into the payload models.

The client never touches the cache; :mod:`nearcache.client.loader` wires
the two together.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from nearcache.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from nearcache.models import ApiConfig, Coordinates, HomeFeed, UserProfile
from nearcache.output import get_output

HOME_PATH = "/api/v1/home"
USER_PROFILE_PATH = "/api/v1/auth/user"


class AsyncApiClient:
    """Asynchronous client for the home-feed and profile endpoints.

    Must be used as an async context manager.

    Args:
        config: Base URL, timeout, and retry settings.
        token: Optional bearer token sent as ``Authorization``.
        transport: Optional custom :mod:`httpx` transport (tests pass an
            :class:`httpx.MockTransport`).
        retry_delay: Base delay in seconds; attempt *n* waits
            ``retry_delay * 2**n``.

    Example::

        async with AsyncApiClient(ApiConfig(base_url="https://api.example.com")) as client:
            feed = await client.fetch_home_feed(Coordinates(latitude=22.35, longitude=91.78))
    """

    def __init__(
        self,
        config: ApiConfig,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay: float = 1.0,
    ) -> None:
        self._config = config
        self._token = token
        self._transport = transport
        self._retry_delay = retry_delay
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncApiClient:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            headers=headers,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    async def fetch_home_feed(
        self,
        coordinates: Coordinates,
        radius_km: Optional[float] = None,
    ) -> HomeFeed:
        """Fetch the home feed for *coordinates*.

        Raises:
            AuthError, NotFoundError, ServerError, ConnectionError_: As
                mapped by :meth:`request`; ``ServerError`` also when the
                envelope reports ``success: false``.
        """
        params: dict[str, Any] = {
            "latitude": coordinates.latitude,
            "longitude": coordinates.longitude,
        }
        if radius_km is not None:
            params["radius"] = radius_km
        data = await self._get_data(HOME_PATH, params)
        return HomeFeed.model_validate(data)

    async def fetch_user_profile(self) -> UserProfile:
        """Fetch the signed-in user's profile."""
        data = await self._get_data(USER_PROFILE_PATH)
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        return UserProfile.model_validate(data)

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request with retry and error mapping.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On other error statuses after retries.
            ConnectionError_: On network / timeout errors after all retries.
        """
        response = await self._execute_with_retry(method, path, params or {})
        self._map_response_error(response)
        return response

    async def _get_data(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = await self.request("GET", path, params)
        try:
            body = response.json()
        except ValueError as exc:
            raise ServerError(f"Invalid JSON from {path}") from exc

        if not isinstance(body, dict) or "data" not in body:
            raise ServerError(f"Unexpected response shape from {path}")
        if body.get("success") is False:
            raise ServerError(body.get("message") or f"Request to {path} was not successful")
        return body["data"]

    async def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
    ) -> httpx.Response:
        """Execute the request, retrying 5xx and network failures with backoff."""
        assert self._client is not None, "Client not initialised -- use as async context manager"

        max_retries = self._config.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.request(method, path, params=params)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = self._retry_delay * 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = self._retry_delay * 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or ""
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        full_msg = f"HTTP {status}: {msg}" if msg else f"HTTP {status}"
        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
