"""Data models for backup/restore operations."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Shape written by the orchestrator
SNAPSHOT_KIND = "collections"

TRIGGER_API = "api"
TRIGGER_SCHEDULER = "scheduler"


class SnapshotMetadata(BaseModel):
    """Provenance of a snapshot. Never affects restore."""

    model_config = ConfigDict(frozen=True)

    trigger: Optional[str] = None
    actor: Optional[str] = None
    role: Optional[str] = None


class Snapshot(BaseModel):
    """Point-in-time aggregate of every collection."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Assigned by the snapshot store on write")
    timestamp: str = Field(..., description="ISO-8601 capture time")
    kind: str = SNAPSHOT_KIND
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)


class SnapshotWriteResult(BaseModel):
    """What a snapshot store reports after persisting a snapshot."""

    id: str
    timestamp: str
    size_bytes: Optional[int] = None


class SnapshotInfo(BaseModel):
    """Listing row, without the payload."""

    id: str
    timestamp: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[SnapshotMetadata] = None
    filename: Optional[str] = None
    size_bytes: Optional[int] = None
    created_at: Optional[str] = None

    @property
    def sort_key(self) -> str:
        return self.timestamp or self.created_at or ""


class JobStatus(str, Enum):
    """Job status enum."""
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class JobRun(BaseModel):
    """One scheduled or manual capture."""

    id: str
    started_at: str
    trigger: str
    status: JobStatus = JobStatus.RUNNING
    finished_at: Optional[str] = None
    backup_id: Optional[str] = None
    message: Optional[str] = None


class RestoreMode(str, Enum):
    """replace clears every collection first; merge only inserts."""
    REPLACE = "replace"
    MERGE = "merge"


class ResourceCounts(BaseModel):
    attempted: int = 0
    restored: int = 0
    failed: int = 0


class ReplayError(BaseModel):
    """A record that could not be replayed."""

    resource: str
    index: int
    message: str
    kind: Optional[str] = None


class RestoreSummary(BaseModel):
    """Outcome of one restore. Never persisted."""

    restore_mode: RestoreMode
    snapshot_id: Optional[str] = None
    timestamp: Optional[str] = None
    kind: Optional[str] = None
    summary: Dict[str, ResourceCounts] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    errors: List[ReplayError] = Field(default_factory=list)

    @property
    def total_failed(self) -> int:
        return sum(counts.failed for counts in self.summary.values())
