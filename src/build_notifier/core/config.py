from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from build_notifier.core.constants import (
    DEFAULT_BACKEND_TIMEOUT_SECONDS,
    DEFAULT_ERROR_SERVICE_NAMESPACE,
    DEFAULT_METRIC_TYPE,
    ERROR_REPORTING_API_URL,
    MONITORING_API_URL,
    SinkMode,
)
from build_notifier.core.exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


class NotifierConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    sink: SinkMode = SinkMode.METRIC
    backend_timeout_seconds: float = Field(
        default=DEFAULT_BACKEND_TIMEOUT_SECONDS, gt=0, le=120
    )
    metric_type: str = DEFAULT_METRIC_TYPE
    error_service_namespace: str = DEFAULT_ERROR_SERVICE_NAMESPACE
    query_group_stats: bool = True
    access_token: str | None = None
    """Static bearer token. When unset, credentials come from the metadata server."""
    monitoring_url: str = MONITORING_API_URL
    error_reporting_url: str = ERROR_REPORTING_API_URL
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True
    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=8080, ge=1, le=65535)

    @classmethod
    def from_env(cls) -> NotifierConfig:
        """Create a :class:`NotifierConfig` from ``NOTIFIER_*`` environment variables.

        Reads the following env vars (all optional):

        * ``NOTIFIER_SINK`` → ``sink`` (``metric``, ``error`` or ``both``)
        * ``NOTIFIER_BACKEND_TIMEOUT`` → ``backend_timeout_seconds``
        * ``NOTIFIER_METRIC_TYPE`` → ``metric_type``
        * ``NOTIFIER_ERROR_SERVICE_NAMESPACE`` → ``error_service_namespace``
        * ``NOTIFIER_QUERY_GROUP_STATS`` → ``query_group_stats``
        * ``NOTIFIER_ACCESS_TOKEN`` → ``access_token``
        * ``NOTIFIER_MONITORING_URL`` / ``NOTIFIER_ERROR_REPORTING_URL``
        * ``NOTIFIER_LOG_LEVEL`` / ``NOTIFIER_LOG_JSON``
        * ``NOTIFIER_HOST`` and ``PORT`` (the latter set by Cloud Run)

        Any variable that is not set or is empty is left at its default value.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        kwargs: dict[str, Any] = {}

        plain = {
            "NOTIFIER_SINK": "sink",
            "NOTIFIER_METRIC_TYPE": "metric_type",
            "NOTIFIER_ERROR_SERVICE_NAMESPACE": "error_service_namespace",
            "NOTIFIER_ACCESS_TOKEN": "access_token",
            "NOTIFIER_MONITORING_URL": "monitoring_url",
            "NOTIFIER_ERROR_REPORTING_URL": "error_reporting_url",
            "NOTIFIER_HOST": "host",
        }
        for env_name, field_name in plain.items():
            value = os.environ.get(env_name)
            if value:
                kwargs[field_name] = value

        log_level = os.environ.get("NOTIFIER_LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()

        timeout_str = os.environ.get("NOTIFIER_BACKEND_TIMEOUT")
        if timeout_str:
            kwargs["backend_timeout_seconds"] = timeout_str

        port_str = os.environ.get("PORT")
        if port_str:
            kwargs["port"] = port_str

        for env_name, field_name in (
            ("NOTIFIER_QUERY_GROUP_STATS", "query_group_stats"),
            ("NOTIFIER_LOG_JSON", "log_json"),
        ):
            value = os.environ.get(env_name)
            if value:
                kwargs[field_name] = _parse_bool(env_name, value)

        try:
            return cls(**kwargs)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid notifier configuration: {exc.error_count()} error(s)",
                details={"errors": exc.errors(include_url=False, include_input=False)},
            ) from exc
