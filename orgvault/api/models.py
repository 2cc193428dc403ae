"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional
from datetime import datetime, timezone


class BackupCreated(BaseModel):
    id: str
    timestamp: str
    size_bytes: Optional[int] = None


class RestoreRequest(BaseModel):
    """Either a stored snapshot id or a full inline snapshot.

    Values are validated by the replayer so shape errors come back as 400
    with a per-field list rather than a 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    snapshot_id: Optional[Any] = Field(default=None, alias="snapshotId")
    snapshot: Optional[Any] = None


class HealthStatus(BaseModel):
    status: str  # "healthy", "degraded", "unhealthy"
    storage: bool
    scheduler: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
