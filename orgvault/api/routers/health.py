"""Health check endpoints."""

from fastapi import APIRouter, Depends
from typing import Dict, Optional

from ..models import HealthStatus
from ..dependencies import get_backup_manager, get_storage_connection
from ..exceptions import StorageUnavailableError
from orgvault.backup import BackupManager
from orgvault._storage import StorageConnection

router = APIRouter(prefix="/health", tags=["health"])


async def check_storage(connection: Optional[StorageConnection]) -> bool:
    """Check persistence connectivity."""
    if connection is None:
        return True  # In-memory collections
    return await connection.check_health()


@router.get("", response_model=HealthStatus)
async def health_check(
    backup_manager: BackupManager = Depends(get_backup_manager),
    connection: Optional[StorageConnection] = Depends(get_storage_connection),
) -> HealthStatus:
    """Storage connectivity and scheduler state."""
    storage_ok = await check_storage(connection)
    return HealthStatus(
        status="healthy" if storage_ok else "unhealthy",
        storage=storage_ok,
        scheduler=backup_manager.scheduler.is_running,
    )


@router.get("/ready")
async def readiness_check(
    connection: Optional[StorageConnection] = Depends(get_storage_connection),
) -> Dict[str, str]:
    """Kubernetes readiness check."""
    if not await check_storage(connection):
        raise StorageUnavailableError("storage")
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Kubernetes liveness check."""
    return {"status": "alive"}
