# Composition helpers shared by the CLI and by embedding applications.
# Core stays free of adapter imports; concrete classes are chosen here.
from typing import Any, Callable, Optional

from genctl.adapters.queue_backend import QueueJobBackend
from genctl.adapters.retry_tenacity import TenacityRetryAdapter
from genctl.adapters.simulated_backend import SimulatedJobBackend
from genctl.core.config import JobControllerConfig
from genctl.core.interfaces.artifact_sink import ArtifactSinkPort
from genctl.core.interfaces.http_client import HttpClientPort
from genctl.core.interfaces.job_backend import JobBackendPort
from genctl.core.interfaces.retry import RetryPort
from genctl.core.managers.job_controller import JobController
from genctl.core.managers.result_materializer import ResultMaterializer
from genctl.core.models.job import JobResult
from genctl.core.settings import GenctlSettings, app_settings, logger


def create_backend(
    config: JobControllerConfig,
    settings: GenctlSettings,
    http_client: Optional[HttpClientPort] = None,
) -> JobBackendPort:
    """Pick the simulator or the remote queue backend.

    The choice follows `config.use_simulated_backend` only. A remote backend
    needs an opened HTTP client plus the backend URL and key; anything missing
    raises ValueError instead of degrading to the simulator.
    """
    if config.use_simulated_backend:
        logger.info(
            f"[factory] using simulated backend ticks={settings.GENCTL_SIMULATED_TICKS} "
            f"kind={settings.GENCTL_SIMULATED_ARTIFACT_KIND}"
        )
        return SimulatedJobBackend(
            ticks=settings.GENCTL_SIMULATED_TICKS,
            artifact_url=settings.GENCTL_SIMULATED_ARTIFACT_URL,
            artifact_kind=settings.GENCTL_SIMULATED_ARTIFACT_KIND,
        )

    if http_client is None:
        raise ValueError("An opened HTTP client is required for the remote backend")
    if settings.GENCTL_BACKEND_URL is None or settings.GENCTL_BACKEND_KEY is None:
        raise ValueError("GENCTL_BACKEND_URL and GENCTL_BACKEND_KEY are required for the remote backend")

    logger.info(f"[factory] using queue backend url={settings.GENCTL_BACKEND_URL}")
    return QueueJobBackend(
        http_client,
        base_url=str(settings.GENCTL_BACKEND_URL),
        api_key=settings.GENCTL_BACKEND_KEY.get_secret_value(),
        default_model=settings.GENCTL_DEFAULT_MODEL,
        request_timeout=settings.GENCTL_REQUEST_TIMEOUT,
    )


def create_controller(
    config: Optional[JobControllerConfig] = None,
    settings: Optional[GenctlSettings] = None,
    backend: Optional[JobBackendPort] = None,
    sink: Optional[ArtifactSinkPort] = None,
    advance: Optional[Callable[[JobResult], Any]] = None,
    http_client: Optional[HttpClientPort] = None,
    retry_port: Optional[RetryPort] = None,
) -> JobController:
    """Wire a JobController with its backend, materializer and retry policy."""
    settings = settings or app_settings
    config = config or JobControllerConfig.from_app_settings(settings)
    if backend is None:
        backend = create_backend(config, settings, http_client)
    if retry_port is None:
        retry_port = TenacityRetryAdapter(
            attempts=config.result_fetch_attempts,
            wait_initial=config.result_fetch_retry_base_wait,
            wait_max=config.result_fetch_retry_max_wait,
        )
    return JobController(
        backend,
        config=config,
        materializer=ResultMaterializer(sink=sink, advance=advance),
        retry_port=retry_port,
    )
