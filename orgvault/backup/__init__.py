"""Snapshot capture, storage, restore and scheduling."""

from .capture import SnapshotOrchestrator
from .jobs import JobHistory
from .manager import BackupManager
from .metrics import MetricsSource
from .models import (
    JobRun,
    JobStatus,
    RestoreMode,
    RestoreSummary,
    Snapshot,
    SnapshotInfo,
    SnapshotMetadata,
    SnapshotWriteResult,
)
from .restore import RestoreReplayer
from .scheduler import BackupScheduler
from .store import FileSnapshotStore, MemorySnapshotStore, SnapshotStore, create_snapshot_store

__all__ = [
    "BackupManager",
    "BackupScheduler",
    "FileSnapshotStore",
    "JobHistory",
    "JobRun",
    "JobStatus",
    "MemorySnapshotStore",
    "MetricsSource",
    "RestoreMode",
    "RestoreReplayer",
    "RestoreSummary",
    "Snapshot",
    "SnapshotInfo",
    "SnapshotMetadata",
    "SnapshotOrchestrator",
    "SnapshotStore",
    "SnapshotWriteResult",
    "create_snapshot_store",
]
