"""ResultMaterializer: completion side effects for a finished job.

Materialization persists the artifact through the sink and then advances the
caller (e.g. moves a wizard to its next step). It runs at most once per
`GenerationJob`, guarded by the job's `materialized` flag.
"""

from typing import Any, Callable, Optional

from genctl.core.interfaces.artifact_sink import ArtifactSinkPort
from genctl.core.models.job import GenerationJob, JobResult, JobState
from genctl.core.settings import logger
from genctl.utils import callback_name, invoke_callback


class ResultMaterializer:
    """Records a completed artifact and advances dependent caller state.

    Attributes:
        sink: Persistence sink receiving the artifact (optional)
        advance: Caller callback invoked with the JobResult after recording (optional)
    """

    def __init__(
        self,
        sink: Optional[ArtifactSinkPort] = None,
        advance: Optional[Callable[[JobResult], Any]] = None,
    ) -> None:
        self.sink = sink
        self.advance = advance

    async def materialize(
        self,
        job: GenerationJob,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Persist and advance for a completed job.

        Returns True when the side effects ran, False when the call was a
        no-op (already materialized, or job not completed). Sink failures are
        appended to `job.warnings` and never undo the completion.
        `should_continue` is consulted after the sink await; when it returns
        False the advance callback is skipped.
        """
        if job.materialized:
            logger.debug(f"[job:materialize] already materialized job_id={job.id}; skipping")
            return False
        if job.status != JobState.completed or job.result is None:
            logger.warning(
                f"[job:materialize] refusing job_id={job.id} status={job.status} "
                f"has_result={job.result is not None}"
            )
            return False

        # flag first: a second call made while the sink is awaited must be a no-op
        job.materialized = True
        result = job.result

        if self.sink is not None:
            try:
                await self.sink.record_artifact(result.artifact_url, result.kind, job.label)
                logger.debug(
                    f"[job:materialize] artifact recorded job_id={job.id} kind={result.kind} "
                    f"url={result.artifact_url}"
                )
            except Exception as exc:
                message = f"Artifact could not be saved to the library: {exc}"
                job.warnings.append(message)
                logger.warning(
                    f"[job:materialize] sink failed job_id={job.id} url={result.artifact_url} error={exc}"
                )

        if should_continue is not None and not should_continue():
            logger.debug(f"[job:materialize] cancelled before advance job_id={job.id}")
            return True

        if self.advance is not None:
            try:
                await invoke_callback(self.advance, result)
            except Exception as exc:
                logger.error(
                    f"[job:materialize] advance callback failed callback={callback_name(self.advance)} "
                    f"job_id={job.id} error={exc}"
                )
        return True
