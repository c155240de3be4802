"""JobController: drives one generation job from submission to a terminal state.

Responsibilities:
1. Validate the input synchronously (no backend contact on failure).
2. Submit through the JobBackendPort.
3. Poll on a fixed interval; tick N+1 is armed only after tick N resolves.
4. Estimate progress on every non-terminal tick.
5. Enforce the attempt ceiling (timeout).
6. On completion fetch the result once, materialize it once, notify once.
7. Suppress every callback of a job that was cancelled or superseded.

State machine:
    idle -> submitting -> polling -> completed | failed | timed_out
    any non-terminal state -> cancelled
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from genctl.core.config import JobControllerConfig
from genctl.core.exceptions import (
    BackendJobError,
    BackendRequestError,
    GenerationJobError,
    JobTimeoutError,
    ResultFetchError,
    SubmissionError,
    ValidationError,
)
from genctl.core.interfaces.job_backend import JobBackendPort
from genctl.core.interfaces.retry import RetryPort
from genctl.core.logging_config import job_id_var
from genctl.core.managers.progress_estimator import estimate_progress
from genctl.core.managers.result_materializer import ResultMaterializer
from genctl.core.models.job import (
    BackendStatus,
    ErrorInfo,
    GenerationJob,
    JobHandle,
    JobInput,
    JobResult,
    JobState,
    TERMINAL_STATES,
)
from genctl.core.settings import logger
from genctl.utils import callback_name, invoke_callback

ProgressCallback = Callable[[int], Any]
CompleteCallback = Callable[[JobResult], Any]
ErrorCallback = Callable[[ErrorInfo], Any]
WarningCallback = Callable[[str], Any]


class TransientBackendError(BackendRequestError):
    """Wrapper for transient backend errors that should be retried.

    Used to distinguish retryable errors (5xx, timeouts, connection errors)
    from non-retryable client errors (4xx) in result fetch retry logic.
    """


class _JobRun:
    """Bookkeeping for a single `start()` invocation.

    `cancelled` is the disposal marker every resumption checks before touching
    the job or invoking callbacks.
    """

    def __init__(self, job: GenerationJob, job_input: JobInput) -> None:
        self.job = job
        self.job_input = job_input
        self.task: Optional[asyncio.Task] = None
        self.cancelled = False


class JobController:
    """Owns the lifecycle of one generation job at a time.

    Attributes:
        config: Immutable polling/progress configuration
    """

    def __init__(
        self,
        backend: JobBackendPort,
        config: Optional[JobControllerConfig] = None,
        materializer: Optional[ResultMaterializer] = None,
        retry_port: Optional[RetryPort] = None,
    ) -> None:
        self._backend = backend
        self.config = config or JobControllerConfig()
        self._materializer = materializer or ResultMaterializer()
        self._retry = retry_port
        self._job = GenerationJob()
        self._run: Optional[_JobRun] = None

        self._progress_listeners: List[ProgressCallback] = []
        self._complete_listeners: List[CompleteCallback] = []
        self._error_listeners: List[ErrorCallback] = []
        self._warning_listeners: List[WarningCallback] = []

    # ----------------- Registration -----------------
    def on_progress(self, callback: ProgressCallback) -> None:
        """Called with each new (strictly higher) progress value."""
        self._progress_listeners.append(callback)

    def on_complete(self, callback: CompleteCallback) -> None:
        """Called at most once per job with its JobResult."""
        self._complete_listeners.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        """Called at most once per job with its ErrorInfo."""
        self._error_listeners.append(callback)

    def on_warning(self, callback: WarningCallback) -> None:
        """Called with non-fatal messages, e.g. the artifact sink failed."""
        self._warning_listeners.append(callback)

    # ----------------- Public API -----------------
    @property
    def backend(self) -> JobBackendPort:
        return self._backend

    @property
    def status(self) -> JobState:
        return self._job.status

    def get_state(self) -> GenerationJob:
        """Read-only snapshot of the current job."""
        return self._job.snapshot()

    def start(self, job_input: Union[JobInput, Mapping[str, Any]]) -> None:
        """Validate the input and begin asynchronous submission.

        Returns immediately. Raises ValidationError synchronously, without
        contacting the backend or touching the current job, when the input
        has no source artifact. Must be called with a running event loop.
        Any prior job of this controller is cancelled.
        """
        parsed = self._validate_input(job_input)
        loop = asyncio.get_running_loop()

        if self._run is not None:
            self._invalidate(self._run, reason="superseded by new start")

        job = GenerationJob(label=parsed.label)
        run = _JobRun(job, parsed)
        self._job = job
        self._run = run
        self._transition(run, JobState.submitting)

        logger.info(
            f"[job:start] job_id={job.id} tool={parsed.tool} kind={parsed.kind} "
            f"max_attempts={self.config.max_attempts} poll_interval_ms={self.config.poll_interval_ms} "
            f"timeout_s={self.config.timeout_seconds:.0f}"
        )
        run.task = loop.create_task(self._drive(run), name=f"genctl-job-{job.id}")

    def cancel(self) -> None:
        """Stop the current job and suppress all of its pending callbacks. Idempotent."""
        if self._run is None:
            return
        self._invalidate(self._run, reason="cancelled by caller")

    async def wait(self) -> GenerationJob:
        """Wait for the current run to finish and return the final snapshot."""
        run = self._run
        if run is not None and run.task is not None:
            await asyncio.gather(run.task, return_exceptions=True)
        return self.get_state()

    async def dispose(self) -> None:
        self.cancel()
        await self.wait()

    # ----------------- Validation -----------------
    def _validate_input(self, job_input: Union[JobInput, Mapping[str, Any]]) -> JobInput:
        if isinstance(job_input, JobInput):
            parsed = job_input
        elif isinstance(job_input, Mapping):
            try:
                parsed = JobInput.model_validate(dict(job_input))
            except PydanticValidationError as exc:
                logger.warning(f"[job:validate] malformed input error_count={exc.error_count()}")
                raise ValidationError("Job input is malformed", diagnostic=str(exc)) from exc
        else:
            raise ValidationError(
                f"Unsupported job input type: {type(job_input).__name__}"
            )

        if not parsed.has_source():
            logger.warning(f"[job:validate] rejected input without source tool={parsed.tool}")
            raise ValidationError(
                "Job input has no source artifact (uploaded file reference or URL)"
            )
        return parsed

    # ----------------- Run orchestration -----------------
    async def _drive(self, run: _JobRun) -> None:
        job_id_var.set(run.job.id)
        try:
            handle = await self._submit(run)
            if handle is None:
                return
            await self._poll_loop(run, handle)
        except asyncio.CancelledError:
            logger.debug(f"[job:run] task cancelled job_id={run.job.id} status={run.job.status}")
            raise
        except Exception as exc:
            # No error may escape the task; land it in the job instead
            logger.error(f"[job:run] unexpected error job_id={run.job.id} error={exc}")
            if not run.cancelled and not run.job.is_in_terminal_state():
                await self._fail(
                    run,
                    BackendJobError(
                        "Unexpected error while tracking the job",
                        diagnostic=repr(exc),
                        job_id=run.job.id,
                    ),
                )

    async def _submit(self, run: _JobRun) -> Optional[JobHandle]:
        job = run.job
        logger.debug(f"[job:submit] submitting job_id={job.id} source={run.job_input.source}")
        try:
            handle = await self._backend.submit(run.job_input)
        except Exception as exc:
            if run.cancelled:
                logger.debug(f"[job:submit] failure after cancel discarded job_id={job.id}")
                return None
            if isinstance(exc, SubmissionError):
                error = exc
                error.job_id = job.id
            else:
                error = SubmissionError(
                    f"Submission rejected: {exc}", diagnostic=repr(exc), job_id=job.id
                )
            await self._fail(run, error)
            return None

        if run.cancelled:
            logger.info(f"[job:submit] late submission ignored job_id={job.id} request_id={handle.request_id}")
            return None

        job.handle = handle
        job.attempt = 0
        self._transition(run, JobState.polling)
        logger.info(f"[job:submit] accepted job_id={job.id} request_id={handle.request_id}")
        await self._set_progress(run, self.config.progress_floor)
        return handle

    async def _poll_loop(self, run: _JobRun, handle: JobHandle) -> None:
        """Poll until a terminal state; one tick in flight at a time."""
        job = run.job
        while not run.cancelled:
            if job.attempt >= self.config.max_attempts:
                await self._fail(
                    run,
                    JobTimeoutError(
                        job_id=job.id,
                        attempts=job.attempt,
                        max_attempts=self.config.max_attempts,
                        poll_interval_ms=self.config.poll_interval_ms,
                    ),
                    state=JobState.timed_out,
                )
                return

            await asyncio.sleep(self.config.poll_interval)
            if run.cancelled:
                return

            finished = await self._tick(run, handle)
            if finished:
                return

    async def _tick(self, run: _JobRun, handle: JobHandle) -> bool:
        """Read status once, update progress once, decide once.

        Returns True when the run reached a terminal state (or was cancelled).
        """
        job = run.job
        try:
            snapshot = await self._backend.poll_status(handle)
        except Exception as exc:
            if run.cancelled:
                return True
            job.attempt += 1
            job.touch()
            if isinstance(exc, BackendRequestError) and not exc.is_transient():
                logger.warning(
                    f"[job:poll] non-transient error job_id={job.id} attempt={job.attempt} "
                    f"status={exc.status} title={exc.title}"
                )
                await self._fail(
                    run,
                    BackendJobError(
                        f"Status check rejected by backend: {exc.title}",
                        diagnostic=str(exc),
                        job_id=job.id,
                    ),
                )
                return True
            logger.warning(
                f"[job:poll] transient error, tick consumed job_id={job.id} attempt={job.attempt} error={exc}"
            )
            return False

        if run.cancelled:
            logger.debug(f"[job:poll] late poll response discarded job_id={job.id}")
            return True

        job.attempt += 1
        job.touch()
        logger.debug(
            f"[job:poll] job_id={job.id} attempt={job.attempt}/{self.config.max_attempts} "
            f"status={snapshot.status} hint={snapshot.hint} queue_position={snapshot.queue_position}"
        )

        if snapshot.status == BackendStatus.COMPLETED:
            await self._complete(run, handle)
            return True

        if snapshot.status == BackendStatus.FAILED:
            await self._fail(
                run,
                BackendJobError(
                    snapshot.message or "Backend reported the job as failed",
                    diagnostic=f"request_id={handle.request_id}",
                    job_id=job.id,
                ),
            )
            return True

        progress = estimate_progress(
            job.attempt,
            self.config.max_attempts,
            hint=snapshot.hint,
            previous=job.progress,
            floor=self.config.progress_floor,
            ceiling=self.config.progress_ceiling,
        )
        await self._set_progress(run, progress)
        return run.cancelled

    async def _complete(self, run: _JobRun, handle: JobHandle) -> None:
        job = run.job
        try:
            result = await self._fetch_result(handle)
            if not result.artifact_url:
                raise ValueError("result has an empty artifact url")
        except Exception as exc:
            if run.cancelled:
                return
            logger.warning(f"[job:fetch] result fetch failed job_id={job.id} error={exc}")
            await self._fail(run, ResultFetchError(job.id, handle.request_id, diagnostic=str(exc)))
            return

        if run.cancelled:
            logger.debug(f"[job:fetch] late result discarded job_id={job.id}")
            return

        if not self._transition(run, JobState.completed):
            return
        job.result = result
        job.progress = 100
        logger.info(
            f"[job:complete] job_id={job.id} attempts={job.attempt} kind={result.kind} url={result.artifact_url}"
        )
        await self._emit(run, self._progress_listeners, 100)

        warnings_before = len(job.warnings)
        await self._materializer.materialize(job, should_continue=lambda: not run.cancelled)
        for warning in job.warnings[warnings_before:]:
            await self._emit(run, self._warning_listeners, warning)

        await self._emit(run, self._complete_listeners, result)

    async def _fetch_result(self, handle: JobHandle) -> JobResult:
        """Fetch the result, retrying transient backend errors when a retry port is set.

        Fetching is an idempotent read, unlike submission which is never repeated.
        """

        async def do_fetch_with_error_classification() -> JobResult:
            try:
                return await self._backend.fetch_result(handle)
            except BackendRequestError as exc:
                if exc.is_transient():
                    logger.debug(
                        f"[job:fetch] transient error, will retry: status={exc.status} request_id={handle.request_id}"
                    )
                    raise TransientBackendError(exc.status, exc.title, exc.detail) from exc
                raise

        if self._retry is None:
            return await do_fetch_with_error_classification()
        return await self._retry.execute(
            do_fetch_with_error_classification,
            attempts=self.config.result_fetch_attempts,
            wait_initial=self.config.result_fetch_retry_base_wait,
            wait_max=self.config.result_fetch_retry_max_wait,
            exception_types=(TransientBackendError,),
        )

    # ----------------- State helpers -----------------
    def _transition(self, run: _JobRun, new_state: JobState) -> bool:
        """Move the job to new_state unless it is already terminal."""
        job = run.job
        if job.is_in_terminal_state():
            logger.warning(
                f"[job:transition] ignored job_id={job.id} from={job.status} to={new_state}"
            )
            return False
        old_state = job.status
        job.status = new_state
        job.touch()
        if new_state in TERMINAL_STATES:
            job.finished = job.updated
            job.handle = None
        logger.debug(f"[job:transition] job_id={job.id} {old_state} -> {new_state}")
        return True

    async def _fail(
        self,
        run: _JobRun,
        error: GenerationJobError,
        state: JobState = JobState.failed,
    ) -> None:
        if run.cancelled:
            return
        job = run.job
        if not self._transition(run, state):
            return
        job.error = error.to_error_info()
        logger.warning(
            f"[job:{state}] job_id={job.id} kind={job.error.kind} attempts={job.attempt} message={job.error.message}"
        )
        await self._emit(run, self._error_listeners, job.error)

    async def _set_progress(self, run: _JobRun, value: int) -> None:
        job = run.job
        if value <= job.progress:
            return
        job.progress = value
        await self._emit(run, self._progress_listeners, value)

    def _invalidate(self, run: _JobRun, reason: str) -> None:
        first = not run.cancelled
        run.cancelled = True
        job = run.job
        if not job.is_in_terminal_state():
            job.status = JobState.cancelled
            job.handle = None
            job.finished = datetime.now(timezone.utc)
            job.touch()
            logger.info(f"[job:cancel] job_id={job.id} attempts={job.attempt} reason={reason}")
        elif first:
            logger.debug(f"[job:cancel] callbacks suppressed job_id={job.id} status={job.status} reason={reason}")

        task = run.task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def _emit(self, run: _JobRun, listeners: List[Callable[..., Any]], *args: Any) -> None:
        for callback in list(listeners):
            if run.cancelled:
                return
            try:
                await invoke_callback(callback, *args)
            except Exception as exc:
                logger.error(
                    f"[job:callback] listener failed callback={callback_name(callback)} "
                    f"job_id={run.job.id} error={exc}"
                )


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
