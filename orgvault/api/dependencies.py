"""Dependency injection for FastAPI."""

from fastapi import Header, Request
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from orgvault.backup import BackupManager
    from orgvault._storage import StorageConnection


async def get_backup_manager(request: Request) -> "BackupManager":
    """Get BackupManager instance from app state."""
    return request.app.state.backup_manager


async def get_storage_connection(request: Request) -> Optional["StorageConnection"]:
    """Get the storage connection if a persistent backend is configured."""
    return getattr(request.app.state, "storage_connection", None)


async def get_actor(
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> dict:
    """Caller identity as forwarded by the authenticating proxy."""
    return {"actor": x_actor_id, "role": x_actor_role}
