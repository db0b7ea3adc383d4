from __future__ import annotations

from enum import StrEnum


class BuildStatus(StrEnum):
    UNKNOWN = "STATUS_UNKNOWN"
    QUEUED = "QUEUED"
    WORKING = "WORKING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    @classmethod
    def _missing_(cls, value: object) -> BuildStatus | None:
        # Some producers drop the prefix on the unknown status.
        if value == "UNKNOWN":
            return cls.UNKNOWN
        return None


class SinkMode(StrEnum):
    METRIC = "metric"
    ERROR = "error"
    BOTH = "both"


class OutcomeStatus(StrEnum):
    OK = "ok"
    DEGRADED = "degraded"
    SKIPPED = "skipped"


DEFAULT_METRIC_TYPE = "custom.googleapis.com/cloud-build-notifier-asdf"
DEFAULT_METRIC_DESCRIPTION = "Success (true) or failure (false) of finished Cloud Build builds."
DEFAULT_ERROR_SERVICE_NAMESPACE = "cloud-build"
DEFAULT_BACKEND_TIMEOUT_SECONDS = 10.0

MONITORING_API_URL = "https://monitoring.googleapis.com/v3"
ERROR_REPORTING_API_URL = "https://clouderrorreporting.googleapis.com/v1beta1"
METADATA_TOKEN_URL = (
    "http://metadata.google.internal/computeMetadata/v1/"
    "instance/service-accounts/default/token"
)
