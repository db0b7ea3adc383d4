from __future__ import annotations

from typing import Any


class NotifierError(Exception):
    """Base exception for all build notifier errors.

    Attributes:
        code: Optional machine-readable error code (e.g. ``"ALREADY_EXISTS"``).
        details: Arbitrary key/value context about the error.
        status_code: HTTP status code when the error originates from a
            backend response (``None`` when not applicable).
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.status_code = status_code


class ConfigurationError(NotifierError): ...


class DecodeError(NotifierError):
    """The inbound delivery envelope is malformed or violates the schema.

    ``details["shape"]`` describes the structure of the offending body with
    the values stripped, so it is safe to log.
    """

    @property
    def shape(self) -> Any:
        return self.details.get("shape")


class TimestampParseError(NotifierError): ...


# ---------------------------------------------------------------------------
# Backend failures
# ---------------------------------------------------------------------------


class BackendCallError(NotifierError):
    """A call to the metrics or error-reporting backend failed.

    Raised for transport errors, non-2xx responses and deadline expiry.
    Sinks absorb it; it never reaches the HTTP caller.
    """


class AlreadyExistsError(BackendCallError):
    """The backend refused a create call because the resource exists."""


class BackendTimeoutError(BackendCallError):
    """The backend did not answer within the per-call deadline."""
