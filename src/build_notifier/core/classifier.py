"""Build status classification."""
from __future__ import annotations

from build_notifier.core.constants import BuildStatus
from build_notifier.core.types import BuildRecord, Classification

TERMINAL_STATUSES: frozenset[BuildStatus] = frozenset(
    {BuildStatus.SUCCESS, BuildStatus.FAILURE}
)


def classify(status: BuildStatus) -> Classification:
    """Map a status to a :class:`Classification`.

    Only ``SUCCESS`` and ``FAILURE`` are actionable. Every other status,
    including ``TIMEOUT`` and ``CANCELLED``, is ignored by the sinks.
    """
    if status not in TERMINAL_STATUSES:
        return Classification(actionable=False)
    return Classification(actionable=True, success=status == BuildStatus.SUCCESS)


class StatusClassifier:
    """Injectable wrapper around :func:`classify`."""

    def classify(self, build: BuildRecord) -> Classification:
        return classify(build.status)
