"""Backup and restore orchestration across all record collections."""

from typing import List, Mapping, Optional

from .capture import SnapshotOrchestrator
from .jobs import JobHistory
from .metrics import MetricsSource
from .models import (
    TRIGGER_API,
    JobRun,
    JobStatus,
    RestoreMode,
    RestoreSummary,
    Snapshot,
    SnapshotInfo,
    SnapshotWriteResult,
)
from .restore import RestoreReplayer, SnapshotInput
from .scheduler import BackupScheduler, tracked_capture
from .store import SnapshotStore, create_snapshot_store
from .._storage import BaseCollection
from ..config import VaultConfig
from ..errors import CaptureInProgressError, SnapshotNotFoundError
from .._utils import logger


class BackupManager:
    """Operational surface of the backup core.

    Owns the orchestrator, snapshot store, replayer, job history and
    scheduler for one process; tests build isolated instances.
    """

    def __init__(
        self,
        collections: Mapping[str, BaseCollection],
        store: SnapshotStore,
        history: Optional[JobHistory] = None,
        include_metrics: bool = True,
        capture_timeout: Optional[float] = None,
        scheduler_interval: float = 900.0,
        scheduler_initial_delay: float = 2.0,
    ):
        """Initialize backup manager.

        Args:
            collections: Record collections keyed by name
            store: Snapshot store
            history: Job history; a fresh one is created when omitted
            include_metrics: Capture the metrics summary under ``data.metrics``
            capture_timeout: Seconds allowed for source enumeration
            scheduler_interval: Seconds between scheduled captures
            scheduler_initial_delay: Seconds before the first scheduled capture
        """
        self.collections = collections
        self.store = store
        self.history = history or JobHistory()

        extra_sources = [MetricsSource(collections)] if include_metrics else []
        self.orchestrator = SnapshotOrchestrator(
            collections,
            store,
            extra_sources=extra_sources,
            capture_timeout=capture_timeout,
        )
        self.replayer = RestoreReplayer(collections, store)
        self.scheduler = BackupScheduler(
            self.orchestrator,
            self.history,
            interval=scheduler_interval,
            initial_delay=scheduler_initial_delay,
        )

    @classmethod
    def from_config(cls, config: VaultConfig, collections: Mapping[str, BaseCollection]) -> "BackupManager":
        store = create_snapshot_store(config.backup.snapshot_backend, config.backup.backup_dir)
        return cls(
            collections,
            store,
            history=JobHistory(config.scheduler.history_size),
            include_metrics=config.backup.include_metrics,
            capture_timeout=config.backup.capture_timeout,
            scheduler_interval=config.scheduler.interval,
            scheduler_initial_delay=config.scheduler.initial_delay,
        )

    async def capture_backup(
        self,
        trigger: str = TRIGGER_API,
        actor: Optional[str] = None,
        role: Optional[str] = None,
    ) -> SnapshotWriteResult:
        """Capture a snapshot now.

        Raises:
            CaptureInProgressError: if another capture is still running
            CaptureError: if the capture fails; nothing is persisted
        """
        if self.history.is_running():
            raise CaptureInProgressError(f"Backup job {self.history.latest().id} is still running")

        job = self.history.start(trigger)
        result = await tracked_capture(self.orchestrator, self.history, job, actor=actor, role=role)
        logger.info(f"Backup created: {result.id} ({trigger})")
        return result

    async def list_backups(self) -> List[SnapshotInfo]:
        return await self.store.list()

    async def read_backup(self, snapshot_id: str) -> Optional[Snapshot]:
        """Return the snapshot or None. Corrupt files raise SnapshotCorruptedError."""
        return await self.store.read(snapshot_id)

    async def get_backup(self, snapshot_id: str) -> Snapshot:
        """Like read_backup, but a missing snapshot raises SnapshotNotFoundError."""
        snapshot = await self.read_backup(snapshot_id)
        if snapshot is None:
            raise SnapshotNotFoundError(snapshot_id)
        return snapshot

    async def restore(
        self,
        snapshot: Optional[SnapshotInput] = None,
        snapshot_id: Optional[str] = None,
        mode: RestoreMode = RestoreMode.REPLACE,
    ) -> RestoreSummary:
        return await self.replayer.restore(snapshot=snapshot, snapshot_id=snapshot_id, mode=mode)

    def list_job_runs(self, status: Optional[JobStatus] = None, limit: Optional[int] = None) -> List[JobRun]:
        return self.history.list(status=status, limit=limit)

    def start_scheduler(self, interval: Optional[float] = None) -> bool:
        return self.scheduler.start(interval)

    async def stop_scheduler(self) -> None:
        await self.scheduler.stop()
