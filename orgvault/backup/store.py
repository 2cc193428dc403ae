"""Snapshot persistence backends."""

import asyncio
import errno
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from .models import Snapshot, SnapshotInfo, SnapshotMetadata, SnapshotWriteResult
from .utils import SNAPSHOT_SUFFIX, is_snapshot_filename, load_json, resolve_snapshot_path, write_json_atomic
from ..errors import SnapshotCorruptedError, SnapshotExistsError
from .._utils import generate_id, logger, utc_now_iso


class SnapshotStore(ABC):
    """Durable home for snapshots. Snapshots are never mutated after write."""

    @abstractmethod
    async def write(self, snapshot: Snapshot) -> SnapshotWriteResult:
        raise NotImplementedError

    @abstractmethod
    async def list(self) -> List[SnapshotInfo]:
        """Newest first, without payloads."""
        raise NotImplementedError

    @abstractmethod
    async def read(self, snapshot_id: str) -> Optional[Snapshot]:
        """Return the snapshot, or None if it does not exist."""
        raise NotImplementedError


class MemorySnapshotStore(SnapshotStore):
    """Process-local store. Contents are lost on restart."""

    def __init__(self):
        self._snapshots: Dict[str, Snapshot] = {}

    async def write(self, snapshot: Snapshot) -> SnapshotWriteResult:
        snapshot_id = generate_id()
        stored = snapshot.model_copy(
            update={"id": snapshot_id, "timestamp": snapshot.timestamp or utc_now_iso()},
            deep=True,
        )
        self._snapshots[snapshot_id] = stored
        return SnapshotWriteResult(id=snapshot_id, timestamp=stored.timestamp)

    async def list(self) -> List[SnapshotInfo]:
        items = [
            SnapshotInfo(id=s.id, timestamp=s.timestamp, kind=s.kind, metadata=s.metadata)
            for s in self._snapshots.values()
        ]
        items.sort(key=lambda item: item.sort_key, reverse=True)
        return items

    async def read(self, snapshot_id: str) -> Optional[Snapshot]:
        if not snapshot_id:
            return None
        stored = self._snapshots.get(snapshot_id)
        return stored.model_copy(deep=True) if stored is not None else None


class FileSnapshotStore(SnapshotStore):
    """One JSON document per snapshot at ``<backup_dir>/<id>.json``."""

    def __init__(self, backup_dir: str = "./data/backups"):
        self.backup_dir = Path(backup_dir)
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    async def write(self, snapshot: Snapshot) -> SnapshotWriteResult:
        snapshot_id, path = resolve_snapshot_path(self.backup_dir, snapshot.id or generate_id())
        stored = snapshot.model_copy(update={"id": snapshot_id, "timestamp": snapshot.timestamp or utc_now_iso()})
        payload = stored.model_dump_json(indent=2)

        size_bytes = await asyncio.to_thread(self._write_new, path, payload, snapshot_id)
        logger.info(f"Snapshot written: {snapshot_id} ({size_bytes:,} bytes)")

        return SnapshotWriteResult(id=snapshot_id, timestamp=stored.timestamp, size_bytes=size_bytes)

    def _write_new(self, path: Path, payload: str, snapshot_id: str) -> int:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        try:
            return write_json_atomic(payload, path)
        except FileExistsError as e:
            raise SnapshotExistsError(snapshot_id) from e

    async def list(self) -> List[SnapshotInfo]:
        return await asyncio.to_thread(self._list_sync)

    def _list_sync(self) -> List[SnapshotInfo]:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        items = []

        for path in self.backup_dir.iterdir():
            if not is_snapshot_filename(path.name) or not path.is_file():
                continue
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue

            info = SnapshotInfo(
                id=path.name[: -len(SNAPSHOT_SUFFIX)],
                filename=path.name,
                size_bytes=stat.st_size,
                created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
            )

            # Listing must survive corrupt or foreign files
            try:
                parsed = load_json(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not parse snapshot file {path.name}: {e}")
            else:
                updates = {}
                if isinstance(parsed.get("timestamp"), str):
                    updates["timestamp"] = parsed["timestamp"]
                if isinstance(parsed.get("kind"), str):
                    updates["kind"] = parsed["kind"]
                if isinstance(parsed.get("metadata"), dict):
                    try:
                        updates["metadata"] = SnapshotMetadata(**parsed["metadata"])
                    except ValidationError as e:
                        logger.debug(f"Ignoring metadata of {path.name}: {e}")
                info = info.model_copy(update=updates)

            items.append(info)

        items.sort(key=lambda item: item.sort_key, reverse=True)
        return items

    async def read(self, snapshot_id: str) -> Optional[Snapshot]:
        try:
            normalized_id, path = resolve_snapshot_path(self.backup_dir, snapshot_id)
        except ValueError as e:
            logger.warning(f"Rejected snapshot id {snapshot_id!r}: {e}")
            return None
        return await asyncio.to_thread(self._read_sync, normalized_id, path)

    def _read_sync(self, snapshot_id: str, path: Path) -> Optional[Snapshot]:
        try:
            parsed = load_json(path)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return None
        except ValueError as e:
            raise SnapshotCorruptedError(snapshot_id, str(e)) from e
        except OSError as e:
            if e.errno == errno.ENAMETOOLONG:
                return None
            raise SnapshotCorruptedError(snapshot_id, f"unreadable: {e.strerror or e}") from e

        parsed.setdefault("id", snapshot_id)
        try:
            return Snapshot.model_validate(parsed)
        except ValidationError as e:
            raise SnapshotCorruptedError(snapshot_id, f"unexpected shape: {e.error_count()} error(s)") from e


def create_snapshot_store(backend: str, backup_dir: str = "./data/backups") -> SnapshotStore:
    """Build the configured snapshot store."""
    if backend == "file":
        return FileSnapshotStore(backup_dir)
    if backend == "memory":
        return MemorySnapshotStore()
    raise ValueError(f"Unknown snapshot backend: {backend}")
