"""Local stand-in for a queue backend.

Produces the same status transitions as a real job without any network
calls: submissions always succeed, each poll advances a per-handle tick
counter, and the `ticks`-th poll reports COMPLETED. The result is a placeholder
of the kind the input asked for. Used for demos and tests, and whenever the
settings select no remote backend.
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Dict, Optional

from genctl.core.exceptions import BackendRequestError
from genctl.core.interfaces.job_backend import JobBackendPort
from genctl.core.models.job import (
    ArtifactKind,
    BackendStatus,
    JobHandle,
    JobInput,
    JobResult,
    StatusSnapshot,
)
from genctl.core.settings import logger

DEFAULT_PLACEHOLDER_URL = (
    "https://test-videos.co.uk/vids/bigbuckbunny/mp4/h264/360/Big_Buck_Bunny_360_10s_1MB.mp4"
)
DEFAULT_IMAGE_PLACEHOLDER_URL = "https://placehold.co/1024x768.png"


class SimulatedJobBackend(JobBackendPort):
    def __init__(
        self,
        ticks: int = 5,
        artifact_url: str = DEFAULT_PLACEHOLDER_URL,
        artifact_kind: ArtifactKind = "video",
        report_hints: bool = False,
        latency: float = 0.0,
    ) -> None:
        if ticks < 1:
            raise ValueError(f"ticks must be >= 1, got {ticks}")
        self.ticks = ticks
        # the configured url replaces the default placeholder of its kind
        self.placeholders: Dict[str, str] = {
            "video": DEFAULT_PLACEHOLDER_URL,
            "image": DEFAULT_IMAGE_PLACEHOLDER_URL,
        }
        self.placeholders[artifact_kind] = artifact_url
        self.report_hints = report_hints
        self.latency = latency
        self._elapsed: Dict[str, int] = {}
        self._kinds: Dict[str, ArtifactKind] = {}
        self.submissions = 0

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _require(self, handle: JobHandle) -> int:
        if handle.request_id not in self._elapsed:
            raise BackendRequestError(404, "Not Found", f"Unknown request '{handle.request_id}'")
        return self._elapsed[handle.request_id]

    async def submit(self, job_input: JobInput) -> JobHandle:
        await self._simulate_latency()
        request_id = f"sim-{uuid.uuid4()}"
        self._elapsed[request_id] = 0
        self._kinds[request_id] = job_input.kind
        self.submissions += 1
        logger.debug(f"[simulator:submit] request_id={request_id} ticks={self.ticks} kind={job_input.kind} source={job_input.source}")
        return JobHandle(request_id=request_id)

    async def poll_status(self, handle: JobHandle) -> StatusSnapshot:
        await self._simulate_latency()
        elapsed = self._require(handle) + 1
        self._elapsed[handle.request_id] = elapsed

        if elapsed >= self.ticks:
            return StatusSnapshot(status=BackendStatus.COMPLETED, hint=100.0)

        hint: Optional[float] = None
        if self.report_hints:
            hint = 100.0 * elapsed / self.ticks
        return StatusSnapshot(status=BackendStatus.IN_PROGRESS, hint=hint)

    async def fetch_result(self, handle: JobHandle) -> JobResult:
        await self._simulate_latency()
        elapsed = self._require(handle)
        if elapsed < self.ticks:
            raise BackendRequestError(409, "Conflict", f"Request '{handle.request_id}' is still in progress")
        # a delivered result is forgotten; fetching it again is a 404
        del self._elapsed[handle.request_id]
        kind = self._kinds.pop(handle.request_id)
        return JobResult(
            artifact_url=self.placeholders[kind],
            kind=kind,
            raw={"simulated": True, "request_id": handle.request_id},
        )

    def elapsed_ticks(self, handle: JobHandle) -> int:
        return self._elapsed.get(handle.request_id, 0)
