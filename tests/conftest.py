"""Shared test fixtures."""
from __future__ import annotations

import base64
import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from build_notifier.backends.error_reporting import ErrorReportingClient
from build_notifier.backends.monitoring import MetricServiceClient
from build_notifier.core.types import BuildRecord

PayloadFactory = Callable[..., dict[str, Any]]


def _build_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "b1",
        "projectId": "p1",
        "status": "SUCCESS",
        "buildTriggerId": "t1",
        "startTime": "2020-01-01T00:00:00Z",
        "finishTime": "2020-01-01T00:05:00Z",
        "logUrl": "http://x",
        "substitutions": {
            "BRANCH_NAME": "main",
            "COMMIT_SHA": "abc123",
            "REPO_NAME": "myrepo",
        },
    }
    payload.update(overrides)
    return payload


def _envelope(data: Any, status: str | None = None) -> dict[str, Any]:
    if status is None:
        status = data["status"] if isinstance(data, dict) else "SUCCESS"
    return {
        "message": {
            "attributes": {"buildId": "b1", "status": status},
            "data": data,
        }
    }


@pytest.fixture
def make_payload() -> PayloadFactory:
    """Factory for the wire form of a build record, with top-level overrides."""
    return _build_payload


@pytest.fixture
def make_envelope() -> Callable[..., dict[str, Any]]:
    """Factory wrapping a ``data`` value in a delivery envelope."""
    return _envelope


@pytest.fixture
def base64_wrap() -> Callable[[dict[str, Any]], str]:
    def _wrap(payload: dict[str, Any]) -> str:
        return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

    return _wrap


@pytest.fixture
def make_build() -> Callable[..., BuildRecord]:
    def _make(**overrides: Any) -> BuildRecord:
        return BuildRecord.model_validate(_build_payload(**overrides))

    return _make


@pytest.fixture
def success_build() -> BuildRecord:
    return BuildRecord.model_validate(_build_payload())


@pytest.fixture
def failure_build() -> BuildRecord:
    return BuildRecord.model_validate(_build_payload(status="FAILURE"))


@pytest.fixture
def metric_client() -> MagicMock:
    client = MagicMock(spec=MetricServiceClient)
    client.create_metric_descriptor = AsyncMock(return_value={})
    client.create_time_series = AsyncMock(return_value=None)
    return client


@pytest.fixture
def error_client() -> MagicMock:
    client = MagicMock(spec=ErrorReportingClient)
    client.list_group_stats = AsyncMock(return_value=[])
    client.report_error_event = AsyncMock(return_value=None)
    return client


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 6, 7, 8, 9, 123000, tzinfo=timezone.utc)
