from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime, timezone
from enum import StrEnum
import uuid

ArtifactKind = Literal["image", "video"]


class JobState(StrEnum):
    idle = "idle"
    submitting = "submitting"
    polling = "polling"
    completed = "completed"
    failed = "failed"
    timed_out = "timed_out"
    cancelled = "cancelled"


TERMINAL_STATES = frozenset(
    {JobState.completed, JobState.failed, JobState.timed_out, JobState.cancelled}
)


class BackendStatus(StrEnum):
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ErrorKind(StrEnum):
    validation = "validation"
    submission = "submission"
    backend_job = "backend_job"
    result_fetch = "result_fetch"
    timeout = "timeout"


# Actionable text for callers rendering an error; the controller never retries on its own.
ERROR_ACTIONS: Dict[ErrorKind, str] = {
    ErrorKind.validation: "Add a source image or URL and try again.",
    ErrorKind.submission: "The generation service rejected the request. Try again in a moment.",
    ErrorKind.backend_job: "The generation failed on the service. Adjust the input and retry.",
    ErrorKind.result_fetch: "The generation finished but its result could not be retrieved. Retry.",
    ErrorKind.timeout: "Generation timed out. Check the service dashboard, then retry.",
}


class JobHandle(BaseModel):
    """Opaque backend reference returned on submission."""

    request_id: str
    status_url: Optional[str] = None
    response_url: Optional[str] = None

    model_config = {"frozen": True}


class JobInput(BaseModel):
    """Caller-supplied unit of work.

    `source` is the addressable artifact the generation starts from: an
    uploaded file reference (storage key, local path) or a URL.
    """

    source: Optional[str] = None
    mask: Optional[str] = None
    prompt: Optional[str] = None
    tool: Optional[str] = None
    kind: ArtifactKind = "image"
    label: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("source", "mask", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def has_source(self) -> bool:
        return bool(self.source)


class StatusSnapshot(BaseModel):
    status: BackendStatus
    hint: Optional[float] = None  # backend-reported percentage, 0-100
    queue_position: Optional[int] = None
    message: Optional[str] = None


class JobResult(BaseModel):
    artifact_url: str
    kind: ArtifactKind
    raw: Optional[Dict[str, Any]] = None


class ErrorInfo(BaseModel):
    kind: ErrorKind
    message: str
    diagnostic: Optional[str] = None
    action: Optional[str] = None


class GenerationJob(BaseModel):
    """Live state of the single job owned by a JobController.

    Notes:
    - Only the controller's submit/tick/fetch handlers mutate this record.
    - `result` and `error` are each set at most once, on entry to a terminal state.
      A cancelled job carries neither.
    - `progress` is non-decreasing and reaches 100 only on `completed`.
    - `materialized` is the single-use guard for completion side effects.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: JobState = JobState.idle
    handle: Optional[JobHandle] = None
    attempt: int = 0
    progress: int = Field(0, ge=0, le=100)
    result: Optional[JobResult] = None
    error: Optional[ErrorInfo] = None
    label: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    materialized: bool = False

    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated: Optional[datetime] = None
    finished: Optional[datetime] = None

    def touch(self) -> None:
        self.updated = datetime.now(timezone.utc)

    def is_in_terminal_state(self) -> bool:
        return self.status in TERMINAL_STATES

    def snapshot(self) -> "GenerationJob":
        return self.model_copy(deep=True)
