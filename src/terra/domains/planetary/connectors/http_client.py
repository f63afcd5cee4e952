"""Shared HTTP plumbing for source adapters."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Union

import httpx

from terra.domains.planetary.connectors import SourceUnavailableError

logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

DEFAULT_HEADERS = {"User-Agent": "TerraDiagnostics/0.1 (planetary health monitor)"}

# Values people leave in .env files instead of a real key.
PLACEHOLDER_KEYS = {"", "your_api_key", "your_api_key_here", "replace_me", "changeme", "none"}


def has_real_key(api_key: str | None) -> bool:
    if api_key is None:
        return False
    key = api_key.strip().lower()
    return key not in PLACEHOLDER_KEYS and not key.startswith("your_")


def create_http_client(
    timeout_seconds: float = 15.0, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Build an AsyncClient with the adapters' timeout and headers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        headers=DEFAULT_HEADERS,
        follow_redirects=True,
        transport=transport,
    )


class SharedHttpClient:
    """One AsyncClient shared by every adapter, closed when the server stops.

    The underlying client is opened on first use. Each running server holds a
    :meth:`session`; when the last one exits the client is closed, and a later
    request opens a fresh one.
    """

    def __init__(
        self, timeout_seconds: float = 15.0, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._sessions = 0

    @property
    def is_open(self) -> bool:
        return self._client is not None and not self._client.is_closed

    def _ensure_client(self) -> httpx.AsyncClient:
        if not self.is_open:
            self._client = create_http_client(self._timeout_seconds, self._transport)
        return self._client

    async def get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._ensure_client().get(url, params=params, headers=headers)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[SharedHttpClient]:
        self._sessions += 1
        try:
            yield self
        finally:
            self._sessions -= 1
            if self._sessions == 0:
                await self.aclose()

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None and not client.is_closed:
            await client.aclose()
            logger.debug("Shared HTTP client closed")


HttpClient = Union[httpx.AsyncClient, SharedHttpClient]


async def get_json(
    client: HttpClient,
    url: str,
    *,
    source: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Raises:
        SourceUnavailableError: on transport errors, timeouts, non-2xx
            responses, or a body that is not JSON.
    """
    try:
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SourceUnavailableError(
            f"{source} returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise SourceUnavailableError(
            f"{source} request failed: {type(exc).__name__}"
        ) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise SourceUnavailableError(f"{source} returned a non-JSON body") from exc


def as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON number (or numeric string) to float, else ``default``."""
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default
