"""Build Notifier: forward Cloud Build status notifications to observability backends."""

from build_notifier.__version__ import __version__
from build_notifier.core.classifier import StatusClassifier, classify
from build_notifier.core.config import NotifierConfig
from build_notifier.core.constants import BuildStatus, OutcomeStatus, SinkMode
from build_notifier.core.exceptions import (
    AlreadyExistsError,
    BackendCallError,
    BackendTimeoutError,
    ConfigurationError,
    DecodeError,
    NotifierError,
    TimestampParseError,
)
from build_notifier.core.types import (
    Attributes,
    BuildRecord,
    Classification,
    DeliveryEnvelope,
    HandleResult,
    Message,
    Outcome,
    Substitutions,
)
from build_notifier.decoding.decoder import EnvelopeDecoder
from build_notifier.handler import NotificationHandler
from build_notifier.sinks import (
    CompositeSink,
    ErrorSink,
    MetricSink,
    NotificationSink,
    build_sink,
)

__all__ = [
    "__version__",
    "AlreadyExistsError",
    "Attributes",
    "BackendCallError",
    "BackendTimeoutError",
    "BuildRecord",
    "BuildStatus",
    "Classification",
    "CompositeSink",
    "ConfigurationError",
    "DecodeError",
    "DeliveryEnvelope",
    "EnvelopeDecoder",
    "ErrorSink",
    "HandleResult",
    "Message",
    "MetricSink",
    "NotificationHandler",
    "NotificationSink",
    "NotifierConfig",
    "NotifierError",
    "Outcome",
    "OutcomeStatus",
    "SinkMode",
    "StatusClassifier",
    "Substitutions",
    "TimestampParseError",
    "build_sink",
    "classify",
]
