from __future__ import annotations

import httpx

from build_notifier.backends.auth import Authenticator
from build_notifier.backends.error_reporting import ErrorReportingClient
from build_notifier.backends.monitoring import MetricServiceClient
from build_notifier.core.config import NotifierConfig
from build_notifier.core.constants import SinkMode
from build_notifier.sinks.base import CompositeSink, NotificationSink
from build_notifier.sinks.error import ErrorSink
from build_notifier.sinks.metric import MetricSink


def build_sink(
    config: NotifierConfig,
    authenticator: Authenticator,
    http_client: httpx.AsyncClient | None = None,
) -> NotificationSink:
    """Construct the sink selected by ``config.sink``.

    ``metric`` and ``error`` give a single translator; ``both`` runs the two
    side by side through a :class:`CompositeSink`.
    """
    sinks: list[NotificationSink] = []

    if config.sink in (SinkMode.METRIC, SinkMode.BOTH):
        monitoring = MetricServiceClient(
            authenticator,
            base_url=config.monitoring_url,
            http_client=http_client,
            timeout_seconds=config.backend_timeout_seconds,
        )
        sinks.append(MetricSink(monitoring, metric_type=config.metric_type))

    if config.sink in (SinkMode.ERROR, SinkMode.BOTH):
        error_reporting = ErrorReportingClient(
            authenticator,
            base_url=config.error_reporting_url,
            http_client=http_client,
            timeout_seconds=config.backend_timeout_seconds,
        )
        sinks.append(
            ErrorSink(
                error_reporting,
                namespace=config.error_service_namespace,
                query_group_stats=config.query_group_stats,
            )
        )

    if len(sinks) == 1:
        return sinks[0]
    return CompositeSink(sinks)
