"""Shared request plumbing for the Google Cloud REST backends."""
from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from build_notifier.backends.auth import Authenticator
from build_notifier.core.constants import DEFAULT_BACKEND_TIMEOUT_SECONDS
from build_notifier.core.exceptions import AlreadyExistsError, BackendCallError
from build_notifier.utils.async_helpers import with_timeout

logger = structlog.get_logger(__name__)

_HTTP_CONFLICT = 409


class RestBackend:
    """Base class for JSON-over-HTTP backend clients.

    Every call is bounded by ``timeout_seconds`` (authentication included)
    and every failure surfaces as a :class:`BackendCallError`. When no
    ``http_client`` is injected, a client is opened and closed per call.
    """

    backend_name = "backend"

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_BACKEND_TIMEOUT_SECONDS,
    ) -> None:
        self._authenticator = authenticator
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds

    @staticmethod
    def _project_path(project_id: str, collection: str) -> str:
        # project_id comes from the notification payload.
        return f"projects/{quote(project_id, safe='')}/{collection}"

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return await with_timeout(
            self._send(method, path, operation, json=json, params=params),
            self._timeout_seconds,
            backend=self.backend_name,
            operation=operation,
        )

    async def _send(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: dict[str, Any] | None,
        params: dict[str, str] | None,
    ) -> dict[str, Any]:
        headers = {
            "Accept": "application/json",
            **await self._authenticator.authorization_headers(),
        }
        url = f"{self._base_url}/{path.lstrip('/')}"

        should_close = False
        client = self._http_client
        if client is None:
            client = httpx.AsyncClient()
            should_close = True

        try:
            response = await client.request(
                method, url, json=json, params=params, headers=headers
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise BackendCallError(
                f"{self.backend_name} {operation} failed: {exc}",
                details={"backend": self.backend_name, "operation": operation},
            ) from exc
        finally:
            if should_close:
                await client.aclose()

        if not response.is_success:
            raise self._error_from_response(response, operation)

        logger.debug(
            "backend_call_succeeded",
            backend=self.backend_name,
            operation=operation,
            status=response.status_code,
        )
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            raise BackendCallError(
                f"{self.backend_name} {operation} returned a non-JSON body",
                details={"backend": self.backend_name, "operation": operation},
                status_code=response.status_code,
            ) from exc
        return body if isinstance(body, dict) else {}

    def _error_from_response(
        self, response: httpx.Response, operation: str
    ) -> BackendCallError:
        """Map a non-2xx response to an exception.

        Google APIs answer with ``{"error": {"code", "message", "status"}}``.
        """
        message = f"HTTP {response.status_code}"
        status: str | None = None
        try:
            error = response.json().get("error", {})
        except (ValueError, AttributeError):
            error = {}
        if isinstance(error, dict):
            message = error.get("message") or message
            status = error.get("status")

        details = {
            "backend": self.backend_name,
            "operation": operation,
            "status": status,
        }
        text = f"{self.backend_name} {operation} failed: {message}"
        if response.status_code == _HTTP_CONFLICT or status == "ALREADY_EXISTS":
            return AlreadyExistsError(
                text, code="ALREADY_EXISTS", details=details, status_code=response.status_code
            )
        return BackendCallError(
            text, code=status, details=details, status_code=response.status_code
        )
