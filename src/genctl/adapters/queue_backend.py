"""QueueJobBackend: JobBackendPort over a queue-style generation HTTP API.

Protocol:
1. POST {base_url}/{model} -> {"request_id", "status_url", "response_url"}
2. GET status_url -> {"status": IN_QUEUE|IN_PROGRESS|COMPLETED|..., "queue_position", "progress"}
3. GET response_url -> model output ({"video": {...}}, {"images": [...]}, ...)

Some models answer the submission with their outputs inline. Those results
are kept and reported as COMPLETED on the first poll, so the controller
follows the same path for both cases.
"""

from typing import Any, Dict, Optional

from genctl.core.exceptions import BackendRequestError, SubmissionError
from genctl.core.interfaces.http_client import HttpClientPort
from genctl.core.interfaces.job_backend import JobBackendPort
from genctl.core.managers.artifact_strategies import ArtifactExtractor
from genctl.core.models.job import (
    BackendStatus,
    JobHandle,
    JobInput,
    JobResult,
    StatusSnapshot,
)
from genctl.core.settings import logger

# Tool identifiers used by the editing screens, mapped to queue model paths
TOOL_MODEL_MAP: Dict[str, str] = {
    "virtual-staging": "fal-ai/flux-2-lora-gallery/apartment-staging",
    "photo-enhancement": "fal-ai/clarity-upscaler",
    "sky-replacement": "fal-ai/flux-pro/v1/fill",
    "twilight": "fal-ai/flux-pro/kontext",
    "item-removal": "fal-ai/bria/eraser",
    "declutter": "fal-ai/bria/eraser",
    "auto-declutter": "fal-ai/image-editing/object-removal",
    "virtual-renovation": "fal-ai/flux-pro/kontext",
    "wall-color": "fal-ai/flux-pro/kontext",
    "night-to-day": "fal-ai/flux-pro/kontext",
    "changing-seasons": "fal-ai/flux/dev/image-to-image",
    "room-tour": "fal-ai/kling-video/v1.5/pro/image-to-video",
    "vehicle-360": "fal-ai/kling-video/v1.5/pro/image-to-video",
    "image-to-video": "fal-ai/kling-video/v1.5/pro/image-to-video",
    "text-to-image": "fal-ai/flux/dev",
}

# Queue status vocabulary -> controller vocabulary
STATUS_MAP: Dict[str, BackendStatus] = {
    "IN_QUEUE": BackendStatus.QUEUED,
    "QUEUED": BackendStatus.QUEUED,
    "IN_PROGRESS": BackendStatus.IN_PROGRESS,
    "COMPLETED": BackendStatus.COMPLETED,
    "FAILED": BackendStatus.FAILED,
    "ERROR": BackendStatus.FAILED,
}


class QueueJobBackend(JobBackendPort):
    """Talks to the queue API through an (already opened) HttpClientPort."""

    def __init__(
        self,
        http_client: HttpClientPort,
        base_url: str,
        api_key: str,
        default_model: str,
        request_timeout: Optional[float] = None,
        extractor: Optional[ArtifactExtractor] = None,
    ) -> None:
        self._http = http_client
        self._base_url = str(base_url).rstrip("/")
        self._api_key = api_key
        self._default_model = default_model
        self._timeout = request_timeout
        self._extractor = extractor or ArtifactExtractor()
        self._models: Dict[str, str] = {}
        self._inline_results: Dict[str, JobResult] = {}

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Key {self._api_key}"}

    def resolve_model(self, job_input: JobInput) -> str:
        if not job_input.tool:
            return self._default_model
        if job_input.tool in TOOL_MODEL_MAP:
            return TOOL_MODEL_MAP[job_input.tool]
        if "/" in job_input.tool:
            # already a model path
            return job_input.tool
        raise SubmissionError(f"Unknown tool: {job_input.tool}")

    def build_payload(self, job_input: JobInput) -> Dict[str, Any]:
        """Translate a JobInput into the model's JSON input."""
        payload: Dict[str, Any] = dict(job_input.options)
        payload["image_url"] = job_input.source
        if job_input.mask:
            payload["mask_url"] = job_input.mask
        if job_input.prompt:
            payload["prompt"] = job_input.prompt
        return payload

    # ----------------- JobBackendPort -----------------
    async def submit(self, job_input: JobInput) -> JobHandle:
        model = self.resolve_model(job_input)
        url = f"{self._base_url}/{model}"
        payload = self.build_payload(job_input)
        logger.debug(f"[queue:submit] POST url={url} payload_keys={list(payload.keys())}")

        resp = await self._http.post(url, json=payload, timeout=self._timeout, headers=self._headers)
        status = resp.get("status")
        body = resp.get("body")
        if status is None or status >= 400:
            detail = (body.get("error") or body.get("detail")) if isinstance(body, dict) else body
            logger.warning(f"[queue:submit] rejected status={status} detail={str(detail)[:200]}")
            raise SubmissionError(
                f"Backend rejected submission with status {status}",
                diagnostic=str(detail)[:500] if detail else None,
            )
        if not isinstance(body, dict) or not body.get("request_id"):
            raise SubmissionError(
                "Backend response is missing request_id",
                diagnostic=str(body)[:500],
            )

        handle = JobHandle(
            request_id=str(body["request_id"]),
            status_url=body.get("status_url"),
            response_url=body.get("response_url"),
        )
        self._models[handle.request_id] = model

        inline = self._extractor.extract(body)
        if inline is not None:
            logger.debug(f"[queue:submit] inline result request_id={handle.request_id}")
            self._inline_results[handle.request_id] = inline
        return handle

    async def poll_status(self, handle: JobHandle) -> StatusSnapshot:
        if handle.request_id in self._inline_results:
            return StatusSnapshot(status=BackendStatus.COMPLETED)

        url = handle.status_url or self._request_url(handle, "/status")
        data = await self._http.get(url, timeout=self._timeout, headers=self._headers)
        raw_status = str(data.get("status", "")).upper()
        status = STATUS_MAP.get(raw_status)
        if status is None:
            logger.warning(f"[queue:poll] unknown status={raw_status!r} request_id={handle.request_id}")
            status = BackendStatus.IN_PROGRESS

        if status == BackendStatus.FAILED:
            self._forget(handle)
        elif status == BackendStatus.COMPLETED:
            # some models include their outputs in the final status payload
            inline = self._extractor.extract(data)
            if inline is not None:
                self._inline_results[handle.request_id] = inline

        hint = data.get("progress")
        return StatusSnapshot(
            status=status,
            hint=float(hint) if isinstance(hint, (int, float)) else None,
            queue_position=data.get("queue_position"),
            message=data.get("error") or data.get("message"),
        )

    async def fetch_result(self, handle: JobHandle) -> JobResult:
        inline = self._inline_results.get(handle.request_id)
        if inline is not None:
            self._forget(handle)
            return inline

        url = handle.response_url or self._request_url(handle, "")
        data = await self._http.get(url, timeout=self._timeout, headers=self._headers)
        # transient errors raise above and keep the entry for a retry
        self._forget(handle)
        result = self._extractor.extract(data)
        if result is None:
            raise BackendRequestError(
                422,
                "Unprocessable Result",
                f"no artifact in result keys={list(data.keys())[:8] if isinstance(data, dict) else type(data).__name__}",
            )
        return result

    def _forget(self, handle: JobHandle) -> None:
        self._models.pop(handle.request_id, None)
        self._inline_results.pop(handle.request_id, None)

    def _request_url(self, handle: JobHandle, suffix: str) -> str:
        model = self._models.get(handle.request_id)
        if model is None:
            raise BackendRequestError(
                404, "Not Found", f"No status url or model known for request '{handle.request_id}'"
            )
        return f"{self._base_url}/{model}/requests/{handle.request_id}{suffix}"
