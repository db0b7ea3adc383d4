"""Cloud Error Reporting v1beta1 client: group stats and event reports."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from build_notifier.backends.base import RestBackend


class ServiceContext(BaseModel):
    """The service/version pair error events are grouped under."""

    model_config = ConfigDict(frozen=True)

    service: str
    version: str

    def to_api(self) -> dict[str, Any]:
        return {"service": self.service, "version": self.version}


class SourceLocation(BaseModel):
    """Where the error was reported from. Empty for build failures."""

    model_config = ConfigDict(frozen=True)

    file_path: str = ""
    line_number: int = 0
    function_name: str = ""

    def to_api(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "functionName": self.function_name,
        }


class ErrorEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    event_time: str
    service_context: ServiceContext
    report_location: SourceLocation = SourceLocation()

    def to_api(self) -> dict[str, Any]:
        return {
            "eventTime": self.event_time,
            "serviceContext": self.service_context.to_api(),
            "message": self.message,
            "context": {"reportLocation": self.report_location.to_api()},
        }


class ErrorReportingClient(RestBackend):
    """Thin async client for the Error Reporting calls the notifier makes."""

    backend_name = "error_reporting"

    async def list_group_stats(
        self,
        project_id: str,
        service: str,
        version: str | None = None,
    ) -> list[dict[str, Any]]:
        """List error group statistics filtered by service and optionally version."""
        params = {"serviceFilter.service": service}
        if version is not None:
            params["serviceFilter.version"] = version
        data = await self._request(
            "GET",
            self._project_path(project_id, "groupStats"),
            "list_group_stats",
            params=params,
        )
        stats = data.get("errorGroupStats", [])
        return stats if isinstance(stats, list) else []

    async def report_error_event(self, project_id: str, event: ErrorEvent) -> None:
        """Report one error event under *project_id*.

        Raises:
            BackendCallError: If the report is rejected or the call fails.
        """
        await self._request(
            "POST",
            self._project_path(project_id, "events:report"),
            "report_error_event",
            json=event.to_api(),
        )
