"""Cloud Monitoring v3 client: metric descriptors and time series."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from build_notifier.backends.base import RestBackend


class LabelDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value_type: str = "STRING"
    description: str = ""

    def to_api(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "valueType": self.value_type,
            "description": self.description,
        }


class MetricDescriptor(BaseModel):
    """Schema of a custom metric."""

    model_config = ConfigDict(frozen=True)

    type: str
    description: str = ""
    metric_kind: str = "GAUGE"
    value_type: str = "BOOL"
    labels: tuple[LabelDescriptor, ...] = ()

    def to_api(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "metricKind": self.metric_kind,
            "valueType": self.value_type,
            "labels": [label.to_api() for label in self.labels],
        }


class Point(BaseModel):
    """One boolean gauge observation."""

    model_config = ConfigDict(frozen=True)

    end_time: str
    bool_value: bool

    def to_api(self) -> dict[str, Any]:
        return {
            "interval": {"endTime": self.end_time},
            "value": {"boolValue": self.bool_value},
        }


class TimeSeries(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric_type: str
    metric_labels: dict[str, str] = Field(default_factory=dict)
    resource_type: str = "global"
    resource_labels: dict[str, str] = Field(default_factory=dict)
    points: tuple[Point, ...] = ()

    def to_api(self) -> dict[str, Any]:
        return {
            "metric": {"type": self.metric_type, "labels": dict(self.metric_labels)},
            "resource": {"type": self.resource_type, "labels": dict(self.resource_labels)},
            "points": [point.to_api() for point in self.points],
        }


class MetricServiceClient(RestBackend):
    """Thin async client for the two Cloud Monitoring calls the notifier makes."""

    backend_name = "monitoring"

    async def create_metric_descriptor(
        self, project_id: str, descriptor: MetricDescriptor
    ) -> dict[str, Any]:
        """Create *descriptor* under *project_id*.

        Raises:
            AlreadyExistsError: If the backend reports the descriptor exists.
            BackendCallError: On any other failure.
        """
        return await self._request(
            "POST",
            self._project_path(project_id, "metricDescriptors"),
            "create_metric_descriptor",
            json=descriptor.to_api(),
        )

    async def create_time_series(
        self, project_id: str, series: list[TimeSeries]
    ) -> None:
        """Write *series* under *project_id*.

        Raises:
            BackendCallError: If the write fails.
        """
        await self._request(
            "POST",
            self._project_path(project_id, "timeSeries"),
            "create_time_series",
            json={"timeSeries": [ts.to_api() for ts in series]},
        )
