"""Metric translator: finished builds become boolean gauge points."""
from __future__ import annotations

import structlog

from build_notifier.backends.monitoring import (
    LabelDescriptor,
    MetricDescriptor,
    MetricServiceClient,
    Point,
    TimeSeries,
)
from build_notifier.core.constants import DEFAULT_METRIC_DESCRIPTION, DEFAULT_METRIC_TYPE
from build_notifier.core.exceptions import AlreadyExistsError, NotifierError
from build_notifier.core.types import BuildRecord, Classification, Outcome
from build_notifier.sinks.base import TranslatorSink
from build_notifier.utils.timestamps import normalize_timestamp

logger = structlog.get_logger(__name__)


class MetricSink(TranslatorSink):
    """Writes one point per finished build to a custom Cloud Monitoring metric.

    The point is ``true`` for ``SUCCESS`` and ``false`` for ``FAILURE`` and is
    stamped with the build's finish time. The metric descriptor is created on
    every call; an "already exists" answer is expected and ignored, so the
    metric installs itself on first use.
    """

    name = "metric"

    def __init__(
        self,
        client: MetricServiceClient,
        *,
        metric_type: str = DEFAULT_METRIC_TYPE,
        description: str = DEFAULT_METRIC_DESCRIPTION,
    ) -> None:
        self._client = client
        self._metric_type = metric_type
        self._description = description

    @property
    def metric_type(self) -> str:
        return self._metric_type

    def descriptor(self) -> MetricDescriptor:
        return MetricDescriptor(
            type=self._metric_type,
            description=self._description,
            metric_kind="GAUGE",
            value_type="BOOL",
            labels=(LabelDescriptor(key="repo_name", value_type="STRING"),),
        )

    @staticmethod
    def metric_labels(build: BuildRecord) -> dict[str, str]:
        # Key casing matches the series already written by earlier deployments.
        return {
            "repo_name": build.repo_name,
            "log_url": build.log_url,
            "commit_sha": build.commit_sha,
            "branchName": build.branch_name,
            "build_trigger_id": build.build_trigger_id,
            "build_id": build.id,
        }

    def build_time_series(self, build: BuildRecord, success: bool) -> TimeSeries:
        """Build the single-point series for *build*.

        Raises:
            TimestampParseError: If ``finishTime`` is missing or unparsable.
        """
        end_time = normalize_timestamp(build.finish_time, field="finishTime")
        return TimeSeries(
            metric_type=self._metric_type,
            metric_labels=self.metric_labels(build),
            resource_type="global",
            resource_labels={"project_id": build.project_id},
            points=(Point(end_time=end_time, bool_value=success),),
        )

    async def ensure_descriptor(self, project_id: str) -> None:
        try:
            await self._client.create_metric_descriptor(project_id, self.descriptor())
        except AlreadyExistsError:
            logger.debug(
                "metric_descriptor_exists",
                project_id=project_id,
                metric_type=self._metric_type,
            )

    async def emit(self, build: BuildRecord, classification: Classification) -> Outcome:
        if not classification.actionable:
            return Outcome.skipped(self.name, f"status {build.status} is not terminal")

        success = bool(classification.success)
        try:
            await self.ensure_descriptor(build.project_id)
            series = self.build_time_series(build, success)
            await self._client.create_time_series(build.project_id, [series])
        except NotifierError as exc:
            logger.error(
                "metric_emit_failed",
                build_id=build.id,
                project_id=build.project_id,
                error=str(exc),
                error_type=type(exc).__name__,
                status_code=exc.status_code,
            )
            return Outcome.degraded(self.name, exc)

        logger.info(
            "metric_emitted",
            build_id=build.id,
            project_id=build.project_id,
            repo_name=build.repo_name,
            success=success,
        )
        return Outcome.ok(self.name)
