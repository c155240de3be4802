from abc import ABC, abstractmethod
from typing import Optional

from genctl.core.models.job import ArtifactKind


class ArtifactSinkPort(ABC):
    """Persistence sink for completed artifacts (asset library, project store...)."""

    @abstractmethod
    async def record_artifact(self, url: str, kind: ArtifactKind, label: Optional[str] = None) -> None:
        """Record a completed artifact. Failures are non-fatal to the job."""
        raise NotImplementedError
