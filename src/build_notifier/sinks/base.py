"""Notification sinks: where classified builds are forwarded."""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog

from build_notifier.core.types import BuildRecord, Classification, Outcome

logger = structlog.get_logger(__name__)


class NotificationSink(ABC):
    """Base class for notification delivery sinks."""

    @abstractmethod
    async def send(
        self, build: BuildRecord, classification: Classification
    ) -> tuple[Outcome, ...]:
        """Forward *build* and return one outcome per translator involved.

        Implementations must not raise: backend failures are reported as
        degraded outcomes.
        """
        ...


class TranslatorSink(NotificationSink):
    """A sink backed by a single translator producing a single outcome."""

    name = "translator"

    @abstractmethod
    async def emit(self, build: BuildRecord, classification: Classification) -> Outcome:
        """Translate *build* into a backend record and submit it."""
        ...

    async def send(
        self, build: BuildRecord, classification: Classification
    ) -> tuple[Outcome, ...]:
        try:
            outcome = await self.emit(build, classification)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "sink_unexpected_error",
                sink=self.name,
                build_id=build.id,
                error=str(exc),
            )
            outcome = Outcome.degraded(self.name, exc)
        return (outcome,)


class CompositeSink(NotificationSink):
    """Runs several sinks concurrently.

    Each sink is isolated from the others: a degraded metric write does not
    stop the error report, and vice versa.
    """

    def __init__(self, sinks: Sequence[NotificationSink]) -> None:
        if not sinks:
            raise ValueError("CompositeSink needs at least one sink")
        self._sinks = tuple(sinks)

    @property
    def sinks(self) -> tuple[NotificationSink, ...]:
        return self._sinks

    async def send(
        self, build: BuildRecord, classification: Classification
    ) -> tuple[Outcome, ...]:
        results = await asyncio.gather(
            *(sink.send(build, classification) for sink in self._sinks)
        )
        return tuple(outcome for outcomes in results for outcome in outcomes)
