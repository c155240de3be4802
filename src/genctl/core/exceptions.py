from typing import Optional

from genctl.core.models.job import ERROR_ACTIONS, ErrorInfo, ErrorKind


class BackendRequestError(Exception):
    """Transport-level failure talking to a job backend.

    Adapters translate HTTP/network errors into this exception; the controller
    maps it onto the job error taxonomy below.
    """

    def __init__(self, status: int, title: str, detail: Optional[str] = None):
        self.status = status
        self.title = title
        self.detail = detail
        super().__init__(f"{status} {title}" + (f": {detail}" if detail else ""))

    def is_transient(self) -> bool:
        # 4xx means the request itself is wrong; repeating it will not help
        return not (400 <= self.status < 500)


# Domain-specific job execution exceptions

class GenerationJobError(Exception):
    """Base exception for generation job failures.

    Attributes:
        message: Human-readable error description
        diagnostic: Technical diagnostic information for debugging
        job_id: Optional job identifier
    """

    kind: ErrorKind = ErrorKind.backend_job

    def __init__(
        self,
        message: str,
        diagnostic: Optional[str] = None,
        job_id: Optional[str] = None
    ):
        self.message = message
        self.diagnostic = diagnostic
        self.job_id = job_id
        super().__init__(message)

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            message=self.message,
            diagnostic=self.diagnostic,
            action=ERROR_ACTIONS.get(self.kind),
        )


class ValidationError(GenerationJobError):
    """Raised synchronously by `start` when the input has no source artifact."""

    kind = ErrorKind.validation


class SubmissionError(GenerationJobError):
    """Raised when the backend rejects the submission or is unreachable."""

    kind = ErrorKind.submission


class BackendJobError(GenerationJobError):
    """Raised when the backend reports the job itself as failed."""

    kind = ErrorKind.backend_job


class ResultFetchError(GenerationJobError):
    """Raised when completion was observed but no usable artifact could be retrieved.

    Attributes:
        request_id: Backend request identifier
    """

    kind = ErrorKind.result_fetch

    def __init__(
        self,
        job_id: str,
        request_id: str,
        diagnostic: Optional[str] = None
    ):
        self.request_id = request_id
        message = f"Result fetch failed for job {job_id} (request: {request_id})"
        super().__init__(message=message, diagnostic=diagnostic, job_id=job_id)


class JobTimeoutError(GenerationJobError):
    """Raised when a job exhausts its poll attempts without a terminal status.

    Attributes:
        attempts: Poll attempts executed
        max_attempts: Configured attempt ceiling
        poll_interval_ms: Configured interval between polls
    """

    kind = ErrorKind.timeout

    def __init__(
        self,
        job_id: str,
        attempts: int,
        max_attempts: int,
        poll_interval_ms: int,
        diagnostic: Optional[str] = None
    ):
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.poll_interval_ms = poll_interval_ms
        ceiling_s = max_attempts * poll_interval_ms / 1000
        message = (
            f"Job {job_id} timed out after {attempts} polls "
            f"(limit: {max_attempts} x {poll_interval_ms}ms = {ceiling_s:.0f}s)"
        )
        super().__init__(message=message, diagnostic=diagnostic, job_id=job_id)
