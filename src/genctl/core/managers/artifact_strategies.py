"""Artifact extraction strategies.

Generation models disagree on where the produced media lives in their result
payload. Each strategy recognizes one shape:
1. VideoArtifactStrategy: {"video": {"url": ...}}
2. ImageListArtifactStrategy: {"images": [{"url": ...}, ...]}
3. SingleImageArtifactStrategy: {"image": {"url": ...}}
4. OutputArtifactStrategy: {"output": "https://..."} or {"output": {"url": ...}}

The first strategy that can handle the payload wins. Payloads that no
strategy recognizes carry no usable artifact.
"""

from typing import Any, Dict, List, Optional, Protocol

from genctl.core.models.job import ArtifactKind, JobResult
from genctl.core.settings import logger

VIDEO_SUFFIXES = (".mp4", ".mov", ".webm", ".m4v")


def _url_of(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict):
        url = value.get("url")
        if isinstance(url, str) and url:
            return url
    return None


class ArtifactStrategy(Protocol):
    def can_handle(self, payload: Dict[str, Any]) -> bool:
        ...

    def extract(self, payload: Dict[str, Any]) -> JobResult:
        ...


class VideoArtifactStrategy:
    def can_handle(self, payload: Dict[str, Any]) -> bool:
        return _url_of(payload.get("video")) is not None

    def extract(self, payload: Dict[str, Any]) -> JobResult:
        return JobResult(artifact_url=_url_of(payload["video"]), kind="video", raw=payload)


class ImageListArtifactStrategy:
    def can_handle(self, payload: Dict[str, Any]) -> bool:
        images = payload.get("images")
        return isinstance(images, list) and bool(images) and _url_of(images[0]) is not None

    def extract(self, payload: Dict[str, Any]) -> JobResult:
        # multi-image models return variants; the first one is the primary artifact
        return JobResult(artifact_url=_url_of(payload["images"][0]), kind="image", raw=payload)


class SingleImageArtifactStrategy:
    def can_handle(self, payload: Dict[str, Any]) -> bool:
        return _url_of(payload.get("image")) is not None

    def extract(self, payload: Dict[str, Any]) -> JobResult:
        return JobResult(artifact_url=_url_of(payload["image"]), kind="image", raw=payload)


class OutputArtifactStrategy:
    """Generic `output` field; kind guessed from the file extension."""

    def can_handle(self, payload: Dict[str, Any]) -> bool:
        return _url_of(payload.get("output")) is not None

    def extract(self, payload: Dict[str, Any]) -> JobResult:
        url = _url_of(payload["output"])
        path = url.split("?", 1)[0].lower()
        kind: ArtifactKind = "video" if path.endswith(VIDEO_SUFFIXES) else "image"
        return JobResult(artifact_url=url, kind=kind, raw=payload)


class ArtifactExtractor:
    """Runs the strategy chain in priority order."""

    def __init__(self, strategies: Optional[List[ArtifactStrategy]] = None):
        self._strategies: List[ArtifactStrategy] = strategies or [
            VideoArtifactStrategy(),
            ImageListArtifactStrategy(),
            SingleImageArtifactStrategy(),
            OutputArtifactStrategy(),
        ]

    def extract(self, payload: Any) -> Optional[JobResult]:
        """Return the artifact found in payload, or None when there is none."""
        if not isinstance(payload, dict):
            logger.debug(f"[artifact:extract] non-dict payload type={type(payload).__name__}")
            return None
        for strategy in self._strategies:
            if strategy.can_handle(payload):
                logger.debug(
                    f"[artifact:extract] using strategy={type(strategy).__name__}"
                )
                return strategy.extract(payload)
        logger.debug(f"[artifact:extract] no strategy matched keys={list(payload.keys())[:8]}")
        return None
