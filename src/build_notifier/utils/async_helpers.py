from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar

from build_notifier.core.exceptions import BackendTimeoutError

T = TypeVar("T")


async def with_timeout(
    coro: Coroutine[Any, Any, T],
    seconds: float,
    *,
    backend: str,
    operation: str,
) -> T:
    """Run a backend call with a deadline.

    Args:
        coro: The coroutine performing the call.
        seconds: Maximum number of seconds to wait.
        backend: Backend name, recorded on the error.
        operation: Operation name, recorded on the error.

    Returns:
        The value returned by *coro*.

    Raises:
        BackendTimeoutError: If *coro* does not complete within *seconds*.
            The coroutine is cancelled.
    """
    try:
        return await asyncio.wait_for(coro, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise BackendTimeoutError(
            f"{backend} {operation} timed out after {seconds:g}s",
            code="DEADLINE_EXCEEDED",
            details={"backend": backend, "operation": operation},
        ) from exc
