"""Error translator: failed builds become Error Reporting events."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import structlog

from build_notifier.backends.error_reporting import (
    ErrorEvent,
    ErrorReportingClient,
    ServiceContext,
    SourceLocation,
)
from build_notifier.core.constants import DEFAULT_ERROR_SERVICE_NAMESPACE
from build_notifier.core.exceptions import NotifierError
from build_notifier.core.types import BuildRecord, Classification, Outcome
from build_notifier.sinks.base import TranslatorSink
from build_notifier.utils.timestamps import format_timestamp

logger = structlog.get_logger(__name__)

MESSAGE_TEMPLATE = "Build failed for trigger {trigger_id}\nbuild: {build_id}\nlogs: {log_url}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorSink(TranslatorSink):
    """Reports each failed build as an error event.

    Events are grouped under the synthetic service ``<namespace>/<repo>`` with
    the trigger id as version, so every trigger of a repository gets its own
    error group. Successful builds are skipped.
    """

    name = "error"

    def __init__(
        self,
        client: ErrorReportingClient,
        *,
        namespace: str = DEFAULT_ERROR_SERVICE_NAMESPACE,
        query_group_stats: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._namespace = namespace.rstrip("/")
        self._query_group_stats = query_group_stats
        self._clock = clock

    def service_context(self, build: BuildRecord) -> ServiceContext:
        return ServiceContext(
            service=f"{self._namespace}/{build.repo_name}",
            version=build.build_trigger_id,
        )

    def build_event(self, build: BuildRecord) -> ErrorEvent:
        # Event time is the submission time; the payload has no stack to locate.
        return ErrorEvent(
            message=MESSAGE_TEMPLATE.format(
                trigger_id=build.build_trigger_id,
                build_id=build.id,
                log_url=build.log_url,
            ),
            event_time=format_timestamp(self._clock()),
            service_context=self.service_context(build),
            report_location=SourceLocation(),
        )

    async def _log_group_stats(self, build: BuildRecord, context: ServiceContext) -> None:
        try:
            stats = await self._client.list_group_stats(
                build.project_id, context.service, context.version
            )
        except NotifierError as exc:
            logger.warning(
                "error_group_stats_failed",
                build_id=build.id,
                service=context.service,
                version=context.version,
                error=str(exc),
            )
            return
        logger.info(
            "error_group_stats",
            build_id=build.id,
            service=context.service,
            version=context.version,
            groups=len(stats),
        )

    async def emit(self, build: BuildRecord, classification: Classification) -> Outcome:
        if not classification.actionable:
            return Outcome.skipped(self.name, f"status {build.status} is not terminal")
        if classification.success:
            return Outcome.skipped(self.name, "build succeeded")

        context = self.service_context(build)
        if self._query_group_stats:
            await self._log_group_stats(build, context)

        event = self.build_event(build)
        try:
            await self._client.report_error_event(build.project_id, event)
        except NotifierError as exc:
            logger.error(
                "error_report_failed",
                build_id=build.id,
                project_id=build.project_id,
                service=context.service,
                version=context.version,
                error=str(exc),
                error_type=type(exc).__name__,
                status_code=exc.status_code,
            )
            return Outcome.degraded(self.name, exc)

        logger.info(
            "error_reported",
            build_id=build.id,
            project_id=build.project_id,
            service=context.service,
            version=context.version,
        )
        return Outcome.ok(self.name)
