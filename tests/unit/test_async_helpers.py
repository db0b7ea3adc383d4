from __future__ import annotations

import asyncio

import pytest

from build_notifier.core.exceptions import BackendCallError, BackendTimeoutError
from build_notifier.utils.async_helpers import with_timeout

# ---------------------------------------------------------------------------
# with_timeout — success cases
# ---------------------------------------------------------------------------


async def test_with_timeout_completes_within_limit() -> None:
    async def _fast() -> str:
        return "quick"

    result = await with_timeout(_fast(), seconds=5.0, backend="monitoring", operation="op")
    assert result == "quick"


async def test_with_timeout_propagates_exception() -> None:
    async def _boom() -> None:
        raise BackendCallError("rejected", status_code=400)

    with pytest.raises(BackendCallError, match="rejected") as exc_info:
        await with_timeout(_boom(), seconds=5.0, backend="monitoring", operation="op")
    assert not isinstance(exc_info.value, BackendTimeoutError)


# ---------------------------------------------------------------------------
# with_timeout — deadline exceeded
# ---------------------------------------------------------------------------


async def test_with_timeout_raises_backend_timeout() -> None:
    async def _slow() -> None:
        await asyncio.sleep(10)

    with pytest.raises(BackendTimeoutError) as exc_info:
        await with_timeout(
            _slow(), seconds=0.01, backend="error_reporting", operation="report_error_event"
        )

    exc = exc_info.value
    assert exc.code == "DEADLINE_EXCEEDED"
    assert exc.details == {"backend": "error_reporting", "operation": "report_error_event"}
    assert "timed out after 0.01s" in str(exc)
    assert isinstance(exc.__cause__, asyncio.TimeoutError)


async def test_with_timeout_cancels_the_call() -> None:
    cancelled = asyncio.Event()

    async def _slow() -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(BackendTimeoutError):
        await with_timeout(_slow(), seconds=0.01, backend="monitoring", operation="op")
    assert cancelled.is_set()
