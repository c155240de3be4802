"""JobBackendPort: hexagonal port for queue-based generation backends.

The controller is written once against this port. Real and simulated
backends are interchangeable; choosing one is a construction-time decision.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from genctl.core.models.job import JobHandle, JobInput, JobResult, StatusSnapshot


class JobBackendPort(ABC):
    """Port abstraction for submitting and tracking one generation job."""

    @abstractmethod
    async def submit(self, job_input: JobInput) -> JobHandle:
        """Enqueue the work and return its handle.

        Raises on malformed input or backend rejection; the controller maps
        any exception here to a SubmissionError.
        """
        raise NotImplementedError

    @abstractmethod
    async def poll_status(self, handle: JobHandle) -> StatusSnapshot:
        """Return the current backend status for the handle."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_result(self, handle: JobHandle) -> JobResult:
        """Return the produced artifact. Only called after COMPLETED was observed."""
        raise NotImplementedError
