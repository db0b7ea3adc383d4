"""Request handler: decode, classify, forward."""
from __future__ import annotations

import structlog

from build_notifier.core.classifier import StatusClassifier
from build_notifier.core.types import HandleResult
from build_notifier.decoding.decoder import EnvelopeDecoder
from build_notifier.sinks.base import NotificationSink

logger = structlog.get_logger(__name__)


class NotificationHandler:
    """Processes one push notification body.

    Only :class:`~build_notifier.core.exceptions.DecodeError` escapes
    :meth:`handle`; sinks absorb backend failures into degraded outcomes.

    Example::

        handler = NotificationHandler(EnvelopeDecoder(), StatusClassifier(), sink)
        result = await handler.handle(body)
    """

    def __init__(
        self,
        decoder: EnvelopeDecoder,
        classifier: StatusClassifier,
        sink: NotificationSink,
    ) -> None:
        self._decoder = decoder
        self._classifier = classifier
        self._sink = sink

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    async def handle(self, body: bytes | str) -> HandleResult:
        envelope = self._decoder.decode(body)
        build = envelope.build

        with structlog.contextvars.bound_contextvars(build_id=build.id):
            classification = self._classifier.classify(build)
            logger.info(
                "notification_received",
                status=build.status.value,
                project_id=build.project_id,
                repo_name=build.repo_name,
                message_id=envelope.message.message_id,
            )

            if not classification.actionable:
                logger.info("notification_ignored", status=build.status.value)
                return HandleResult(
                    build_id=build.id,
                    status=build.status,
                    classification=classification,
                )

            outcomes = await self._sink.send(build, classification)
            for outcome in outcomes:
                if outcome.is_degraded:
                    logger.warning(
                        "notification_degraded",
                        sink=outcome.sink,
                        cause=outcome.cause,
                    )

        return HandleResult(
            build_id=build.id,
            status=build.status,
            classification=classification,
            outcomes=outcomes,
        )
