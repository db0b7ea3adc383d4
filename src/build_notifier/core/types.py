from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from build_notifier.core.constants import BuildStatus, OutcomeStatus

_WIRE_CONFIG = ConfigDict(frozen=True, extra="ignore")


class Substitutions(BaseModel):
    """Trigger substitutions attached to a build.

    The wire keys are the fixed, upper-case Cloud Build substitution names.
    Only the aliases are accepted: ``branch_name`` in a payload is treated as
    a missing ``BRANCH_NAME``, not as a synonym.
    """

    model_config = _WIRE_CONFIG

    branch_name: str = Field(alias="BRANCH_NAME")
    commit_sha: str = Field(alias="COMMIT_SHA")
    repo_name: str = Field(alias="REPO_NAME")


class BuildRecord(BaseModel):
    """One build pipeline execution, as carried in the message ``data``."""

    model_config = _WIRE_CONFIG

    id: str
    project_id: str = Field(alias="projectId")
    status: BuildStatus
    build_trigger_id: str = Field(alias="buildTriggerId")
    start_time: str | None = Field(default=None, alias="startTime")
    finish_time: str | None = Field(default=None, alias="finishTime")
    log_url: str = Field(alias="logUrl")
    substitutions: Substitutions

    @property
    def branch_name(self) -> str:
        return self.substitutions.branch_name

    @property
    def commit_sha(self) -> str:
        return self.substitutions.commit_sha

    @property
    def repo_name(self) -> str:
        return self.substitutions.repo_name

    def to_wire(self) -> dict[str, Any]:
        """Serialize back to the JSON shape the decoder accepts."""
        return self.model_dump(mode="json", by_alias=True)


class Attributes(BaseModel):
    """Sideband message attributes set by the publisher."""

    model_config = _WIRE_CONFIG

    build_id: str = Field(alias="buildId")
    status: BuildStatus


class Message(BaseModel):
    model_config = _WIRE_CONFIG

    attributes: Attributes
    data: BuildRecord
    message_id: str | None = Field(default=None, alias="messageId")
    publish_time: str | None = Field(default=None, alias="publishTime")


class DeliveryEnvelope(BaseModel):
    """Push-delivery wrapper around exactly one :class:`Message`."""

    model_config = _WIRE_CONFIG

    message: Message
    subscription: str | None = None

    @property
    def build(self) -> BuildRecord:
        return self.message.data


# ---------------------------------------------------------------------------
# Pipeline results
# ---------------------------------------------------------------------------


class Classification(BaseModel):
    """Whether a build is terminal and, if so, whether it succeeded."""

    model_config = ConfigDict(frozen=True)

    actionable: bool
    success: bool | None = None


class Outcome(BaseModel):
    """Result of one sink handling one build.

    Sinks never raise; a failed backend call becomes a ``degraded`` outcome
    whose ``cause`` holds the logged error message.
    """

    model_config = ConfigDict(frozen=True)

    sink: str
    status: OutcomeStatus
    cause: str | None = None
    error_type: str | None = None

    @classmethod
    def ok(cls, sink: str) -> Outcome:
        return cls(sink=sink, status=OutcomeStatus.OK)

    @classmethod
    def skipped(cls, sink: str, reason: str) -> Outcome:
        return cls(sink=sink, status=OutcomeStatus.SKIPPED, cause=reason)

    @classmethod
    def degraded(cls, sink: str, exc: BaseException) -> Outcome:
        return cls(
            sink=sink,
            status=OutcomeStatus.DEGRADED,
            cause=str(exc),
            error_type=type(exc).__name__,
        )

    @property
    def is_degraded(self) -> bool:
        return self.status == OutcomeStatus.DEGRADED


class HandleResult(BaseModel):
    """What the request handler did with one notification."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    status: BuildStatus
    classification: Classification
    outcomes: tuple[Outcome, ...] = ()
