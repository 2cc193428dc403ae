"""Tests for SnapshotOrchestrator."""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from orgvault.backup.capture import SnapshotOrchestrator
from orgvault.backup.metrics import MetricsSource
from orgvault.backup.store import FileSnapshotStore, MemorySnapshotStore
from orgvault.errors import CaptureError


def failing_source(exc: Exception) -> MagicMock:
    source = MagicMock()
    source.list = AsyncMock(side_effect=exc)
    return source


@pytest.mark.asyncio
async def test_capture_end_to_end(collections, temp_backup_dir):
    await collections["employees"].create({"employeeId": "E1"})
    store = FileSnapshotStore(str(temp_backup_dir))
    orchestrator = SnapshotOrchestrator(collections, store)

    result = await orchestrator.capture("api")

    assert result.id
    assert result.timestamp.endswith("Z")

    snapshot = await store.read(result.id)
    assert len(snapshot.data["employees"]) == 1
    assert len(snapshot.data["assessments"]) == 0
    assert snapshot.kind == "collections"
    assert snapshot.metadata.trigger == "api"


@pytest.mark.asyncio
async def test_capture_contains_every_collection(collections, sample_records, populate):
    await populate(collections, sample_records)
    store = MemorySnapshotStore()

    result = await SnapshotOrchestrator(collections, store).capture()
    snapshot = await store.read(result.id)

    assert set(snapshot.data) == set(sample_records)
    for name, records in sample_records.items():
        assert len(snapshot.data[name]) == len(records)


@pytest.mark.asyncio
async def test_capture_records_provenance(collections):
    store = MemorySnapshotStore()

    result = await SnapshotOrchestrator(collections, store).capture(
        trigger="scheduler", actor="u-42", role="manager"
    )
    metadata = (await store.read(result.id)).metadata

    assert metadata.trigger == "scheduler"
    assert metadata.actor == "u-42"
    assert metadata.role == "manager"


@pytest.mark.asyncio
async def test_capture_includes_metrics_source(collections, sample_records, populate):
    await populate(collections, sample_records)
    store = MemorySnapshotStore()
    orchestrator = SnapshotOrchestrator(collections, store, extra_sources=[MetricsSource(collections)])

    result = await orchestrator.capture()
    metrics = (await store.read(result.id)).data["metrics"]

    assert metrics["totals"]["employees"] == 2
    assert metrics["employees"]["billed"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [RuntimeError("db down"), ConnectionError("refused")])
async def test_capture_is_all_or_nothing(collections, exc):
    store = MemorySnapshotStore()
    sources = dict(collections)
    sources["assessments"] = failing_source(exc)

    with pytest.raises(CaptureError, match="assessments"):
        await SnapshotOrchestrator(sources, store).capture()

    assert await store.list() == []


@pytest.mark.asyncio
async def test_capture_waits_for_all_sources_before_failing(collections):
    store = MemorySnapshotStore()
    slow_finished = asyncio.Event()

    async def slow_list():
        await asyncio.sleep(0.05)
        slow_finished.set()
        return []

    slow = MagicMock()
    slow.list = slow_list
    sources = dict(collections)
    sources["learningPaths"] = slow
    sources["assessments"] = failing_source(RuntimeError("boom"))

    with pytest.raises(CaptureError):
        await SnapshotOrchestrator(sources, store).capture()

    assert slow_finished.is_set()
    assert await store.list() == []


@pytest.mark.asyncio
async def test_capture_source_raising_synchronously(collections):
    store = MemorySnapshotStore()
    broken = MagicMock()
    broken.list = MagicMock(side_effect=TypeError("not awaitable"))
    sources = dict(collections)
    sources["announcements"] = broken

    with pytest.raises(CaptureError, match="announcements"):
        await SnapshotOrchestrator(sources, store).capture()

    assert await store.list() == []


@pytest.mark.asyncio
async def test_capture_timeout(collections):
    store = MemorySnapshotStore()

    async def hanging_list():
        await asyncio.sleep(5)
        return []

    hanging = MagicMock()
    hanging.list = hanging_list
    sources = dict(collections)
    sources["employees"] = hanging

    orchestrator = SnapshotOrchestrator(sources, store, capture_timeout=0.05)
    with pytest.raises(CaptureError, match="timed out"):
        await orchestrator.capture()

    assert await store.list() == []


@pytest.mark.asyncio
async def test_capture_write_failure(collections):
    store = MagicMock()
    store.write = AsyncMock(side_effect=OSError("disk full"))

    with pytest.raises(CaptureError, match="disk full"):
        await SnapshotOrchestrator(collections, store).capture()
