"""Restore API endpoint."""

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_backup_manager
from ..exceptions import RestoreFailedError, RestoreValidationFailedError
from ..models import RestoreRequest
from orgvault.backup import BackupManager
from orgvault.backup.models import RestoreMode, RestoreSummary
from orgvault.errors import RestoreError, RestoreValidationError

router = APIRouter(prefix="/restore", tags=["restore"])


@router.post("", response_model=RestoreSummary)
async def restore_snapshot(
    request: RestoreRequest,
    restore_mode: str = Query(default=RestoreMode.REPLACE.value, alias="restoreMode"),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> RestoreSummary:
    """Replay a stored or inline snapshot into the collections.

    ``restoreMode=merge`` inserts without clearing; any other value replaces.
    Per-record failures are reported in the summary, not as an HTTP error.
    """
    mode = RestoreMode.MERGE if restore_mode == RestoreMode.MERGE.value else RestoreMode.REPLACE

    try:
        return await backup_manager.restore(
            snapshot=request.snapshot,
            snapshot_id=request.snapshot_id,
            mode=mode,
        )
    except RestoreValidationError as e:
        raise RestoreValidationFailedError(e.errors)
    except RestoreError as e:
        raise RestoreFailedError(str(e))
