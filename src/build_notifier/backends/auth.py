"""Credentials for backend calls.

The hosting environment supplies the identity: on Cloud Run or GCE the
metadata server hands out short-lived OAuth tokens for the attached service
account. A static token or no credentials at all are supported for local
runs and emulators.
"""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Callable

import httpx
import structlog

from build_notifier.core.constants import METADATA_TOKEN_URL
from build_notifier.core.exceptions import BackendCallError

logger = structlog.get_logger(__name__)


class Authenticator(ABC):
    """Supplies request headers that authorize backend calls."""

    @abstractmethod
    async def authorization_headers(self) -> dict[str, str]:
        """Return headers to merge into every backend request."""
        ...


class AnonymousAuthenticator(Authenticator):
    """Sends no credentials. Useful against emulators and in tests."""

    async def authorization_headers(self) -> dict[str, str]:
        return {}


class StaticTokenAuthenticator(Authenticator):
    """Sends a fixed bearer token."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("token must not be empty")
        self._token = token

    async def authorization_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}


class MetadataServerAuthenticator(Authenticator):
    """Fetches access tokens for the default service account from the metadata server.

    Tokens are cached and refreshed ``refresh_margin_seconds`` before they
    expire. Concurrent callers share a single refresh.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        token_url: str = METADATA_TOKEN_URL,
        timeout_seconds: float = 5.0,
        refresh_margin_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http_client = http_client
        self._token_url = token_url
        self._timeout_seconds = timeout_seconds
        self._refresh_margin = refresh_margin_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._token: str | None = None
        self._expires_at = 0.0

    async def authorization_headers(self) -> dict[str, str]:
        token = await self._get_token()
        return {"Authorization": f"Bearer {token}"}

    async def _get_token(self) -> str:
        async with self._lock:
            if self._token is not None and self._clock() < self._expires_at:
                return self._token
            token, expires_in = await self._fetch()
            self._token = token
            self._expires_at = self._clock() + max(expires_in - self._refresh_margin, 0.0)
            logger.debug("access_token_refreshed", expires_in=expires_in)
            return token

    async def _fetch(self) -> tuple[str, float]:
        should_close = False
        client = self._http_client
        if client is None:
            client = httpx.AsyncClient()
            should_close = True

        try:
            response = await client.get(
                self._token_url,
                headers={"Metadata-Flavor": "Google"},
                timeout=self._timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise BackendCallError(
                f"metadata token request failed: {exc}",
                details={"backend": "metadata", "operation": "token"},
            ) from exc
        finally:
            if should_close:
                await client.aclose()

        if not response.is_success:
            raise BackendCallError(
                f"metadata token request returned HTTP {response.status_code}",
                details={"backend": "metadata", "operation": "token"},
                status_code=response.status_code,
            )

        try:
            data = response.json()
            return str(data["access_token"]), float(data.get("expires_in", 0))
        except (ValueError, KeyError, TypeError) as exc:
            raise BackendCallError(
                "metadata token response is not a token document",
                details={"backend": "metadata", "operation": "token"},
            ) from exc
