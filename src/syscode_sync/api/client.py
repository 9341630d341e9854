#!/usr/bin/env python3
"""Generic HTTP Client for the asset-management API.

This module provides a reusable HTTP client that handles the common concerns
of talking to the API:

    - Token authentication via ApiTokenAuth
    - Rate limit and 5xx handling with exponential backoff
    - Connection pooling via a shared aiohttp session
    - Error handling with typed exceptions

Design Philosophy:
    This client knows HOW to talk to the API, but not WHAT to fetch.
    It has no knowledge of groups or assets. That knowledge belongs in
    the gateway adapters that compose this client.

Usage:
    async with AssetApiClient(auth, base_url) as client:
        data = await client.get("/groups", params={"name": "APP1", "limit": 1})
"""
import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from .auth import ApiTokenAuth
from .exceptions import (
    APIError,
    ConfigurationError,
    ConnectionError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from .resilience import retry_async

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RateLimitError, ServerError, NetworkError)


class AssetApiClient:
    """Async HTTP client for the asset-management API.

    Used as an async context manager so the session is always closed:

        async with AssetApiClient(auth, base_url) as client:
            data = await client.get("/assets", params={"name": "srv1"})

    Attributes:
        auth: ApiTokenAuth supplying request headers
        base_url: Base URL for API requests
        max_retries: Attempts for retryable failures (429, 5xx, network)
        timeout_seconds: Total per-request timeout
    """

    def __init__(
        self,
        auth: ApiTokenAuth,
        base_url: str,
        max_retries: int = 3,
        timeout_seconds: float = 60.0,
        initial_backoff: float = 1.0,
    ):
        """Initialize the client.

        Raises:
            ConfigurationError: If base_url is empty.
        """
        self.auth = auth
        self.base_url = (base_url or "").rstrip("/")
        self.max_retries = max(1, max_retries)
        self.timeout_seconds = timeout_seconds
        self.initial_backoff = initial_backoff

        if not self.base_url:
            raise ConfigurationError(
                "Base URL is required. Provide --base-url or set SYNC_API_BASE_URL.",
                missing_keys=["SYNC_API_BASE_URL"],
            )

        self._session: Optional[aiohttp.ClientSession] = None

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "AssetApiClient":
        """Enter async context: create the HTTP session."""
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=10, limit_per_host=10),
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds, connect=10),
        )
        logger.debug(f"Opened session to {self.base_url} (token {self.auth.token_id})")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context: close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    # ----------------------------------------
    # Low-Level Request Methods
    # ----------------------------------------

    def url_for(self, endpoint: str) -> str:
        """Absolute URL for an endpoint path."""
        return f"{self.base_url}{endpoint}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """Make a single HTTP request (no retry logic).

        Returns:
            Parsed JSON response, or an empty dict for an empty body

        Raises:
            APIError: If response status is not 2xx
            RuntimeError: If called outside of async context manager
            ConnectionError: If connection to server fails
            TimeoutError: If request times out
        """
        if not self._session:
            raise RuntimeError(
                "AssetApiClient must be used as async context manager: "
                "async with AssetApiClient(...) as client:"
            )

        url = self.url_for(endpoint)
        logger.debug(f"{method} {url} params={params}")

        try:
            async with self._session.request(
                method=method,
                url=url,
                headers=self.auth.headers(),
                params=params,
                json=json_body,
            ) as response:
                body = await response.text()

                if response.status >= 400:
                    raise self._create_api_error(
                        status=response.status,
                        method=method,
                        endpoint=endpoint,
                        response_body=body,
                        retry_after=response.headers.get("Retry-After"),
                    )

                if not body.strip():
                    return {}
                try:
                    return json.loads(body)
                except json.JSONDecodeError as e:
                    raise APIError(
                        f"{method} {endpoint} returned a non-JSON body",
                        status_code=response.status,
                        endpoint=endpoint,
                        method=method,
                        response_body=body,
                        cause=e,
                    )

        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to {self.base_url}",
                host=self.base_url,
                cause=e,
            )

        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Request to {endpoint} timed out",
                timeout_seconds=self.timeout_seconds,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Network error during {method} {endpoint}: {e}",
                cause=e,
            )

    def _create_api_error(
        self,
        status: int,
        method: str,
        endpoint: str,
        response_body: str,
        retry_after: Optional[str] = None,
    ) -> APIError:
        """Create appropriate APIError subclass based on status code."""
        if status == 404:
            return NotFoundError(
                resource_type="Resource",
                resource_id=endpoint,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status == 429:
            try:
                wait = int(retry_after) if retry_after else None
            except ValueError:
                wait = None
            return RateLimitError(
                f"Rate limit exceeded for {endpoint}",
                retry_after=wait,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status == 400 or status == 422:
            return ValidationError(
                f"Validation failed for {method} {endpoint}",
                status_code=status,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status >= 500:
            return ServerError(
                f"Server error ({status}) for {method} {endpoint}",
                status_code=status,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        return APIError(
            f"{method} {endpoint} failed",
            status_code=status,
            endpoint=endpoint,
            method=method,
            response_body=response_body,
        )

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """Make an HTTP request, retrying 429, 5xx and network failures.

        Client errors (400, 401, 403, 404, 422) fail immediately. Only reads
        go through here; writes are single-shot so a timed-out create or
        membership replace is never sent twice.
        """
        return await retry_async(
            self._request,
            method,
            endpoint,
            params=params,
            json_body=json_body,
            max_attempts=self.max_retries,
            initial_delay=self.initial_backoff,
            retryable_exceptions=RETRYABLE_ERRORS,
        )

    # ----------------------------------------
    # High-Level Request Methods
    # ----------------------------------------

    async def get(self, endpoint: str, params: Optional[dict] = None, retry: bool = True) -> Any:
        """Make a GET request.

        With retry=False the request is sent once; callers that run their
        own bounded retry loop use this so attempts are not multiplied.
        """
        if not retry:
            return await self._request("GET", endpoint, params=params)
        return await self._request_with_retry("GET", endpoint, params=params)

    async def post(self, endpoint: str, json_body: Any, params: Optional[dict] = None) -> Any:
        """Make a POST request (no retry)."""
        return await self._request("POST", endpoint, params=params, json_body=json_body)

    async def put(self, endpoint: str, json_body: Any, params: Optional[dict] = None) -> Any:
        """Make a PUT request (no retry)."""
        return await self._request("PUT", endpoint, params=params, json_body=json_body)
