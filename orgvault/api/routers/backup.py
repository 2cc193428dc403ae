"""Backup API endpoints."""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ..dependencies import get_actor, get_backup_manager
from ..exceptions import (
    BackupCorruptedError,
    BackupFailedError,
    BackupInProgressError,
    BackupNotFoundError,
)
from ..models import BackupCreated
from orgvault.backup import BackupManager
from orgvault.backup.models import TRIGGER_API, JobRun, JobStatus, Snapshot, SnapshotInfo
from orgvault.errors import (
    CaptureError,
    CaptureInProgressError,
    SnapshotCorruptedError,
    SnapshotNotFoundError,
)
from orgvault._utils import logger

router = APIRouter(prefix="/backup", tags=["backup"])


@router.post("", response_model=BackupCreated, status_code=201)
async def create_backup(
    backup_manager: BackupManager = Depends(get_backup_manager),
    actor: dict = Depends(get_actor),
) -> BackupCreated:
    """Capture a snapshot of every collection now.

    Refused with 409 while another capture (manual or scheduled) is running.
    """
    try:
        result = await backup_manager.capture_backup(
            trigger=TRIGGER_API,
            actor=actor["actor"],
            role=actor["role"],
        )
    except CaptureInProgressError as e:
        raise BackupInProgressError(str(e))
    except CaptureError as e:
        logger.error(f"Manual backup failed: {e}")
        raise BackupFailedError(str(e))

    return BackupCreated(id=result.id, timestamp=result.timestamp, size_bytes=result.size_bytes)


@router.get("", response_model=List[SnapshotInfo])
async def list_backups(
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> List[SnapshotInfo]:
    """List stored snapshots, newest first."""
    return await backup_manager.list_backups()


@router.get("/jobs", response_model=List[JobRun])
async def list_backup_jobs(
    status: Optional[JobStatus] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> List[JobRun]:
    """Recent capture jobs, newest first."""
    return backup_manager.list_job_runs(status=status, limit=limit)


@router.get("/{snapshot_id}", response_model=Snapshot)
async def get_backup(
    snapshot_id: str,
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> Snapshot:
    try:
        return await backup_manager.get_backup(snapshot_id)
    except SnapshotNotFoundError:
        raise BackupNotFoundError(snapshot_id)
    except SnapshotCorruptedError as e:
        raise BackupCorruptedError(snapshot_id, e.reason)
