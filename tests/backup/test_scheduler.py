"""Tests for BackupScheduler and tracked captures."""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from orgvault.backup.jobs import JobHistory
from orgvault.backup.models import JobStatus, SnapshotWriteResult
from orgvault.backup.scheduler import BackupScheduler, tracked_capture
from orgvault.errors import CaptureError


def make_orchestrator(side_effect=None) -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.capture = AsyncMock(
        return_value=SnapshotWriteResult(id="snap-1", timestamp="2025-01-01T00:00:00.000Z"),
        side_effect=side_effect,
    )
    return orchestrator


@pytest.mark.asyncio
async def test_tracked_capture_success():
    history = JobHistory()
    job = history.start("api")

    result = await tracked_capture(make_orchestrator(), history, job, actor="u1", role="admin")

    assert result.id == "snap-1"
    assert job.status == JobStatus.SUCCESS
    assert job.backup_id == "snap-1"


@pytest.mark.asyncio
async def test_tracked_capture_failure_recorded_once_and_reraised():
    history = JobHistory()
    job = history.start("api")

    with pytest.raises(CaptureError):
        await tracked_capture(make_orchestrator(CaptureError("db down")), history, job)

    assert job.status == JobStatus.ERROR
    assert job.message == "db down"
    assert len(history.list()) == 1


@pytest.mark.asyncio
async def test_run_once_success():
    history = JobHistory()
    scheduler = BackupScheduler(make_orchestrator(), history)

    job = await scheduler.run_once()

    assert job.trigger == "scheduler"
    assert job.status == JobStatus.SUCCESS
    assert job.backup_id == "snap-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [CaptureError("db down"), RuntimeError("unexpected")])
async def test_run_once_failure_does_not_raise(exc):
    history = JobHistory()
    scheduler = BackupScheduler(make_orchestrator(exc), history)

    job = await scheduler.run_once()

    assert job.status == JobStatus.ERROR
    assert job.finished_at is not None
    assert not history.is_running()


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped():
    history = JobHistory()
    release = asyncio.Event()

    async def slow_capture(**kwargs):
        await release.wait()
        return SnapshotWriteResult(id="slow", timestamp="t")

    orchestrator = MagicMock()
    orchestrator.capture = AsyncMock(side_effect=slow_capture)
    scheduler = BackupScheduler(orchestrator, history)

    first = asyncio.create_task(scheduler.run_once())
    await asyncio.sleep(0)
    assert history.is_running()

    skipped = await scheduler.run_once()
    assert skipped is None
    assert len(history.list()) == 1

    release.set()
    job = await first
    assert job.status == JobStatus.SUCCESS
    assert orchestrator.capture.await_count == 1


@pytest.mark.asyncio
async def test_timer_fires_and_stop_waits_for_inflight():
    history = JobHistory()
    scheduler = BackupScheduler(make_orchestrator(), history, interval=0.02, initial_delay=0)

    assert scheduler.start() is True
    assert scheduler.start() is False
    assert scheduler.is_running

    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert not scheduler.is_running
    runs = history.list()
    assert len(runs) >= 2
    assert all(run.status == JobStatus.SUCCESS for run in runs)

    # No further ticks after stop
    await asyncio.sleep(0.05)
    assert len(history.list()) == len(runs)


@pytest.mark.asyncio
async def test_stop_lets_inflight_capture_finish():
    history = JobHistory()
    release = asyncio.Event()

    async def slow_capture(**kwargs):
        await release.wait()
        return SnapshotWriteResult(id="slow", timestamp="t")

    orchestrator = MagicMock()
    orchestrator.capture = AsyncMock(side_effect=slow_capture)
    scheduler = BackupScheduler(orchestrator, history, interval=60, initial_delay=0)

    scheduler.start()
    await asyncio.sleep(0.02)
    assert history.is_running()

    stopper = asyncio.create_task(scheduler.stop())
    await asyncio.sleep(0.02)
    assert not stopper.done()

    release.set()
    await stopper
    assert history.latest().status == JobStatus.SUCCESS


@pytest.mark.asyncio
async def test_start_rejects_non_positive_interval():
    scheduler = BackupScheduler(make_orchestrator(), JobHistory())

    with pytest.raises(ValueError):
        scheduler.start(interval=0)
    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    scheduler = BackupScheduler(make_orchestrator(), JobHistory())
    await scheduler.stop()
    assert not scheduler.is_running
