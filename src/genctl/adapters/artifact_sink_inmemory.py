"""In-memory implementation of ArtifactSinkPort.

Async-safe using an asyncio.Lock. Used by the CLI and the tests; an
application embedding the controller plugs in its own asset library.
Records can optionally be mirrored to JSON files (GENCTL_ARTIFACT_DUMP_DIR).
"""
from __future__ import annotations

import asyncio
import json
import os
from copy import deepcopy
from datetime import datetime, timezone
from typing import Dict, List, Optional

from genctl.core.interfaces.artifact_sink import ArtifactSinkPort
from genctl.core.models.job import ArtifactKind
from genctl.core.settings import logger


class InMemoryArtifactSink(ArtifactSinkPort):
    def __init__(self, dump_dir: str | None = None) -> None:
        self._records: List[Dict[str, Optional[str]]] = []
        self._lock = asyncio.Lock()
        self._dump_dir = dump_dir or os.environ.get("GENCTL_ARTIFACT_DUMP_DIR")
        if self._dump_dir:
            os.makedirs(self._dump_dir, exist_ok=True)

    def _dump(self, index: int, record: Dict[str, Optional[str]]) -> None:
        if not self._dump_dir:
            return
        payload = {
            "meta": {
                "dumped_at": datetime.now(timezone.utc).isoformat(),
                "sink": "in-memory",
                "version": 1,
            },
            "artifact": record,
        }
        path = os.path.join(self._dump_dir, f"artifact-{index:04d}.json")
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
        except OSError as exc:
            # the record itself is kept; only the mirror file is lost
            logger.warning(f"[sink:dump] could not write path={path} error={exc}")

    async def record_artifact(self, url: str, kind: ArtifactKind, label: Optional[str] = None) -> None:
        if not url:
            raise ValueError("artifact url must not be empty")
        async with self._lock:
            record = {
                "url": url,
                "kind": kind,
                "label": label,
                "recorded": datetime.now(timezone.utc).isoformat(),
            }
            self._records.append(record)
            self._dump(len(self._records), record)
            logger.info(f"[sink:record] kind={kind} label={label} url={url}")

    # Convenience accessor (not part of port but useful for tests)
    async def records(self) -> List[Dict[str, Optional[str]]]:
        async with self._lock:
            return deepcopy(self._records)
