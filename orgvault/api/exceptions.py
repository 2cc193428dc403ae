"""Custom exceptions for FastAPI application."""

from typing import Dict, List

from fastapi import HTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class OrgVaultAPIError(HTTPException):
    """Base exception for orgvault API errors."""
    pass


class BackupNotFoundError(OrgVaultAPIError):
    def __init__(self, snapshot_id: str):
        super().__init__(HTTP_404_NOT_FOUND, f"Backup snapshot {snapshot_id} not found")


class BackupCorruptedError(OrgVaultAPIError):
    def __init__(self, snapshot_id: str, reason: str):
        super().__init__(HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to read backup snapshot {snapshot_id}: {reason}")


class BackupInProgressError(OrgVaultAPIError):
    def __init__(self, message: str):
        super().__init__(HTTP_409_CONFLICT, message)


class BackupFailedError(OrgVaultAPIError):
    def __init__(self, message: str):
        super().__init__(HTTP_500_INTERNAL_SERVER_ERROR, message or "Failed to create backup snapshot.")


class RestoreValidationFailedError(OrgVaultAPIError):
    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__(HTTP_400_BAD_REQUEST, {"message": "Validation failed.", "errors": errors})


class RestoreFailedError(OrgVaultAPIError):
    def __init__(self, message: str):
        super().__init__(HTTP_500_INTERNAL_SERVER_ERROR, message or "Restore failed.")


class StorageUnavailableError(OrgVaultAPIError):
    def __init__(self, backend: str):
        super().__init__(HTTP_503_SERVICE_UNAVAILABLE, f"{backend} backend temporarily unavailable")
