"""Exception hierarchy for the backup/restore core."""

from enum import Enum
from typing import Dict, List, Optional


class OrgVaultError(Exception):
    """Base exception for orgvault operations."""
    pass


class ConfigurationError(OrgVaultError):
    """Required configuration is missing or invalid. Not retryable."""
    pass


class StorageConnectionError(OrgVaultError):
    """Persistence engine is unreachable."""
    pass


class CaptureError(OrgVaultError):
    """A snapshot capture failed; nothing was persisted."""
    pass


class CaptureInProgressError(OrgVaultError):
    """Another capture is still running."""
    pass


class SnapshotNotFoundError(OrgVaultError):
    """No snapshot exists for the requested id."""

    def __init__(self, snapshot_id: str):
        super().__init__(f"Snapshot not found: {snapshot_id}")
        self.snapshot_id = snapshot_id


class SnapshotCorruptedError(OrgVaultError):
    """A snapshot file exists but cannot be parsed."""

    def __init__(self, snapshot_id: str, reason: str):
        super().__init__(f"Snapshot {snapshot_id} is unreadable: {reason}")
        self.snapshot_id = snapshot_id
        self.reason = reason


class SnapshotExistsError(OrgVaultError):
    """Refusing to overwrite an already persisted snapshot."""

    def __init__(self, snapshot_id: str):
        super().__init__(f"Snapshot already exists: {snapshot_id}")
        self.snapshot_id = snapshot_id


class RestoreValidationError(OrgVaultError):
    """Restore input was rejected before any side effect."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        message = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"Validation failed: {message}")


class RestoreError(OrgVaultError):
    """Restore failed outside of per-record replay (e.g. while clearing)."""
    pass


class CreateErrorKind(str, Enum):
    """Why a collection refused a record."""
    DUPLICATE_KEY = "duplicate_key"
    VALIDATION = "validation"


class RecordCreateError(OrgVaultError):
    """A collection rejected a record on create."""

    def __init__(self, kind: CreateErrorKind, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field
