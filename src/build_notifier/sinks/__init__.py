"""Notification sinks forwarding builds to observability backends."""
from __future__ import annotations

from build_notifier.sinks.base import CompositeSink, NotificationSink, TranslatorSink
from build_notifier.sinks.error import ErrorSink
from build_notifier.sinks.factory import build_sink
from build_notifier.sinks.metric import MetricSink

__all__ = [
    "CompositeSink",
    "ErrorSink",
    "MetricSink",
    "NotificationSink",
    "TranslatorSink",
    "build_sink",
]
