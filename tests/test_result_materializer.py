"""Tests for ResultMaterializer: exactly-once completion side effects."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from genctl.core.interfaces.artifact_sink import ArtifactSinkPort
from genctl.core.managers.result_materializer import ResultMaterializer
from genctl.core.models.job import GenerationJob, JobResult, JobState


@pytest.fixture
def completed_job():
    return GenerationJob(
        status=JobState.completed,
        progress=100,
        label="Room tour",
        result=JobResult(artifact_url="https://cdn.test/tour.mp4", kind="video"),
    )


@pytest.mark.asyncio
async def test_records_then_advances(completed_job):
    order = []
    sink = AsyncMock(spec=ArtifactSinkPort)
    sink.record_artifact.side_effect = lambda *a: order.append("record")
    advance = Mock(side_effect=lambda r: order.append("advance"))

    ran = await ResultMaterializer(sink=sink, advance=advance).materialize(completed_job)

    assert ran is True
    assert completed_job.materialized is True
    sink.record_artifact.assert_awaited_once_with("https://cdn.test/tour.mp4", "video", "Room tour")
    advance.assert_called_once_with(completed_job.result)
    assert order == ["record", "advance"]


@pytest.mark.asyncio
async def test_second_call_is_noop(completed_job):
    sink = AsyncMock(spec=ArtifactSinkPort)
    advance = Mock()
    materializer = ResultMaterializer(sink=sink, advance=advance)

    assert await materializer.materialize(completed_job) is True
    assert await materializer.materialize(completed_job) is False

    sink.record_artifact.assert_awaited_once()
    advance.assert_called_once()


@pytest.mark.asyncio
async def test_concurrent_calls_run_once(completed_job):
    gate = asyncio.Event()

    class SlowSink(ArtifactSinkPort):
        def __init__(self):
            self.calls = 0

        async def record_artifact(self, url, kind, label=None):
            self.calls += 1
            await gate.wait()

    sink = SlowSink()
    materializer = ResultMaterializer(sink=sink)

    first = asyncio.create_task(materializer.materialize(completed_job))
    await asyncio.sleep(0)
    second = await materializer.materialize(completed_job)
    gate.set()

    assert await first is True
    assert second is False
    assert sink.calls == 1


@pytest.mark.asyncio
async def test_not_completed_job_is_refused():
    job = GenerationJob(status=JobState.failed)
    sink = AsyncMock(spec=ArtifactSinkPort)

    assert await ResultMaterializer(sink=sink).materialize(job) is False
    assert job.materialized is False
    sink.record_artifact.assert_not_called()


@pytest.mark.asyncio
async def test_sink_failure_becomes_warning(completed_job):
    sink = AsyncMock(spec=ArtifactSinkPort)
    sink.record_artifact.side_effect = OSError("disk full")
    advance = Mock()

    ran = await ResultMaterializer(sink=sink, advance=advance).materialize(completed_job)

    assert ran is True
    assert completed_job.status == JobState.completed
    assert len(completed_job.warnings) == 1
    assert "disk full" in completed_job.warnings[0]
    advance.assert_called_once()


@pytest.mark.asyncio
async def test_should_continue_false_skips_advance(completed_job):
    sink = AsyncMock(spec=ArtifactSinkPort)
    advance = Mock()

    await ResultMaterializer(sink=sink, advance=advance).materialize(
        completed_job, should_continue=lambda: False
    )

    sink.record_artifact.assert_awaited_once()
    advance.assert_not_called()


@pytest.mark.asyncio
async def test_advance_failure_is_contained(completed_job):
    advance = AsyncMock(side_effect=RuntimeError("wizard closed"))

    assert await ResultMaterializer(advance=advance).materialize(completed_job) is True
    advance.assert_awaited_once()
