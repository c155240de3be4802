"""Configuration models for core domain components.

This module provides Pydantic-based configuration classes that consolidate
settings for the job controller, enabling dependency injection and testability.
"""

from pydantic import BaseModel, Field, model_validator


class JobControllerConfig(BaseModel):
    """Configuration for JobController behavior.

    Closed and validated at construction: unknown keys are rejected and the
    instance is immutable afterwards.

    Attributes:
        poll_interval_ms: Milliseconds between status polls
        max_attempts: Poll attempts before the job times out
        use_simulated_backend: Build the controller on the local simulator
        progress_floor: Progress reported once submission succeeds
        progress_ceiling: Highest heuristic progress before confirmed completion
        result_fetch_attempts: Attempts for fetching a completed result (transient errors only)
    """

    poll_interval_ms: int = Field(
        default=5000,
        gt=0,
        description="Interval in milliseconds between job status polls"
    )

    max_attempts: int = Field(
        default=60,
        ge=1,
        description="Maximum number of polls before the job is marked timed out"
    )

    use_simulated_backend: bool = Field(
        default=False,
        description="Run jobs against the local simulator instead of a remote backend"
    )

    progress_floor: int = Field(
        default=10,
        ge=0,
        le=99,
        description="Progress percentage reported once the submission is accepted"
    )

    progress_ceiling: int = Field(
        default=95,
        ge=1,
        le=99,
        description="Upper bound of heuristic progress; 100 is reserved for completion"
    )

    result_fetch_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts to fetch a completed result on transient errors"
    )

    result_fetch_retry_base_wait: float = Field(
        default=0.5,
        gt=0,
        description="Base wait time in seconds for exponential backoff between fetch attempts"
    )

    result_fetch_retry_max_wait: float = Field(
        default=4.0,
        gt=0,
        description="Maximum wait time in seconds between fetch attempts"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def _check_progress_bounds(self) -> "JobControllerConfig":
        if self.progress_floor >= self.progress_ceiling:
            raise ValueError(
                f"progress_floor ({self.progress_floor}) must be lower than "
                f"progress_ceiling ({self.progress_ceiling})"
            )
        return self

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000

    @property
    def timeout_seconds(self) -> float:
        """Worst-case wall-clock polling window."""
        return self.max_attempts * self.poll_interval

    @classmethod
    def from_app_settings(cls, settings) -> "JobControllerConfig":
        """Factory method to construct config from GenctlSettings instance.

        Args:
            settings: GenctlSettings instance from core.settings

        Returns:
            JobControllerConfig with values from app settings
        """
        return cls(
            poll_interval_ms=settings.GENCTL_POLL_INTERVAL_MS,
            max_attempts=settings.GENCTL_MAX_ATTEMPTS,
            use_simulated_backend=settings.use_simulated_backend,
            # progress bounds and fetch retry settings use defaults
        )
