"""Tests for utils/logging.py — configure_logging and get_logger."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from build_notifier.utils.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("level", "json_output", "expected"),
    [
        ("DEBUG", False, logging.DEBUG),
        ("INFO", True, logging.INFO),
        ("warning", True, logging.WARNING),
        ("ERROR", False, logging.ERROR),
    ],
)
def test_configure_logging_sets_root_level(
    level: str, json_output: bool, expected: int
) -> None:
    configure_logging(level, json=json_output)
    assert logging.getLogger().level == expected


def test_configure_logging_unknown_level_falls_back_to_info() -> None:
    configure_logging("CHATTY")
    assert logging.getLogger().level == logging.INFO


def test_configure_logging_installs_single_handler() -> None:
    configure_logging("INFO", json=True)
    configure_logging("INFO", json=True)
    assert len(logging.getLogger().handlers) == 1


def test_configure_logging_quiets_http_client() -> None:
    configure_logging("DEBUG", json=True)
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_json_output_is_one_object_per_line(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO", json=True)
    logging.getLogger("uvicorn.error").info("server started")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "server started"
    assert record["level"] == "info"
    assert "timestamp" in record


# ---------------------------------------------------------------------------
# get_logger
# ---------------------------------------------------------------------------


def test_get_logger_returns_logger() -> None:
    logger = get_logger("build_notifier.test")
    assert logger is not None
    assert hasattr(logger, "info")
