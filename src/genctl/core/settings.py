# Logging adapter for application-wide logging
from genctl.adapters.logging_adapter import LoggingAdapter

from pydantic import HttpUrl, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings
from rich import print

from genctl.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class GenctlSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }
    GENCTL_LOG_LEVEL: str = "INFO"
    GENCTL_POLL_INTERVAL_MS: int = 5000
    GENCTL_MAX_ATTEMPTS: int = 60
    # Forces the local simulator even when a backend is configured
    GENCTL_USE_SIMULATED_BACKEND: bool = False
    GENCTL_BACKEND_URL: HttpUrl | None = None
    GENCTL_BACKEND_KEY: SecretStr | None = None
    GENCTL_DEFAULT_MODEL: str = "fal-ai/kling-video/v1.5/pro/image-to-video"
    GENCTL_REQUEST_TIMEOUT: float = 10.0  # seconds
    GENCTL_SIMULATED_TICKS: int = 5
    GENCTL_SIMULATED_ARTIFACT_URL: str = (
        "https://test-videos.co.uk/vids/bigbuckbunny/mp4/h264/360/Big_Buck_Bunny_360_10s_1MB.mp4"
    )
    GENCTL_SIMULATED_ARTIFACT_KIND: str = "video"

    @computed_field
    @property
    def use_simulated_backend(self) -> bool:
        """Simulate when forced or when no remote backend is configured."""
        if self.GENCTL_USE_SIMULATED_BACKEND:
            return True
        return self.GENCTL_BACKEND_URL is None or self.GENCTL_BACKEND_KEY is None

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("genctl settings:")
        print(self)

    @field_validator("GENCTL_SIMULATED_ARTIFACT_KIND")
    def ensure_artifact_kind(cls, value: str) -> str:
        """Only image and video artifacts are recorded."""
        value = value.strip().lower()
        if value not in {"image", "video"}:
            raise ValueError(f"GENCTL_SIMULATED_ARTIFACT_KIND must be image or video, got {value!r}")
        return value


app_settings = GenctlSettings()

logger = LoggingAdapter("genctl", app_settings.GENCTL_LOG_LEVEL)
