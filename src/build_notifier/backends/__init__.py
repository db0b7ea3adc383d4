"""Backend clients for Cloud Monitoring and Cloud Error Reporting."""
from __future__ import annotations

from build_notifier.backends.auth import (
    AnonymousAuthenticator,
    Authenticator,
    MetadataServerAuthenticator,
    StaticTokenAuthenticator,
)
from build_notifier.backends.error_reporting import (
    ErrorEvent,
    ErrorReportingClient,
    ServiceContext,
    SourceLocation,
)
from build_notifier.backends.monitoring import (
    LabelDescriptor,
    MetricDescriptor,
    MetricServiceClient,
    Point,
    TimeSeries,
)

__all__ = [
    "AnonymousAuthenticator",
    "Authenticator",
    "ErrorEvent",
    "ErrorReportingClient",
    "LabelDescriptor",
    "MetadataServerAuthenticator",
    "MetricDescriptor",
    "MetricServiceClient",
    "Point",
    "ServiceContext",
    "SourceLocation",
    "StaticTokenAuthenticator",
    "TimeSeries",
]
