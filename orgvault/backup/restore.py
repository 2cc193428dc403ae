"""Replay a snapshot back into the collections."""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .models import (
    SNAPSHOT_KIND,
    ReplayError,
    ResourceCounts,
    RestoreMode,
    RestoreSummary,
    Snapshot,
)
from .store import SnapshotStore
from .._storage import BaseCollection, COLLECTION_NAMES
from ..errors import (
    RecordCreateError,
    RestoreError,
    RestoreValidationError,
    SnapshotCorruptedError,
)
from .._utils import logger

SnapshotInput = Union[Snapshot, Dict[str, Any]]


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


class RestoreReplayer:
    """Re-insert snapshot records, reporting per-record failures as data."""

    def __init__(self, collections: Mapping[str, BaseCollection], store: SnapshotStore):
        self.collections = collections
        self.store = store

    async def resolve(
        self,
        snapshot: Optional[SnapshotInput] = None,
        snapshot_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Resolve the restore input to a plain snapshot document.

        An inline snapshot takes precedence over ``snapshot_id``.

        Raises:
            RestoreValidationError: on any resolution failure
        """
        if snapshot is None and snapshot_id is None:
            raise RestoreValidationError([{
                "field": "snapshot_id|snapshot",
                "message": "Provide either snapshot_id (stored snapshot) or snapshot (full JSON body).",
            }])

        errors = []
        if snapshot_id is not None and (not isinstance(snapshot_id, str) or not snapshot_id.strip()):
            errors.append({"field": "snapshot_id", "message": "snapshot_id must be a non-empty string."})
        if snapshot is not None and not isinstance(snapshot, (Snapshot, dict)):
            errors.append({"field": "snapshot", "message": "snapshot must be a JSON object."})
        if errors:
            raise RestoreValidationError(errors)

        if snapshot is not None:
            if isinstance(snapshot, Snapshot):
                return snapshot.model_dump()
            return snapshot

        try:
            stored = await self.store.read(snapshot_id.strip())
        except SnapshotCorruptedError as e:
            raise RestoreValidationError([{
                "field": "snapshot_id",
                "message": f"Failed to read snapshot: {e.reason}",
            }]) from e
        except OSError as e:
            raise RestoreValidationError([{
                "field": "snapshot_id",
                "message": f"Failed to read snapshot: {e.strerror or e}",
            }]) from e

        if stored is None:
            raise RestoreValidationError([{"field": "snapshot_id", "message": "Snapshot not found."}])
        return stored.model_dump()

    def extract_collections(self, document: Dict[str, Any]) -> Tuple[Dict[str, List[Any]], List[str]]:
        """Pull the known sections out of a snapshot document.

        Sections are read from ``document["data"]`` or, failing that, from
        the document root. Missing or malformed sections become empty lists.
        """
        warnings: List[str] = []
        data = document.get("data")
        source = data if isinstance(data, dict) else document

        collections = {name: _as_list(source.get(name)) for name in COLLECTION_NAMES}

        if not any(collections.values()):
            warnings.append(
                "No known resource sections found in snapshot "
                f"(expected data.{'/'.join(COLLECTION_NAMES)})."
            )

        kind = document.get("kind")
        if isinstance(kind, str) and kind != SNAPSHOT_KIND:
            warnings.append(f"Snapshot kind '{kind}' is not '{SNAPSHOT_KIND}'; restoring known sections only.")

        return collections, warnings

    async def clear_all(self) -> None:
        """Clear every collection. No cross-collection transaction."""
        names = [name for name in COLLECTION_NAMES if name in self.collections]
        results = await asyncio.gather(
            *(self.collections[name].clear() for name in names),
            return_exceptions=True,
        )
        failures = [(n, r) for n, r in zip(names, results) if isinstance(r, BaseException)]
        if failures:
            name, exc = failures[0]
            logger.error(f"Restore aborted while clearing {name}: {exc}")
            raise RestoreError(f"Failed to clear {name}: {exc}") from exc

    async def _replay_collection(
        self,
        name: str,
        records: List[Any],
        counts: ResourceCounts,
        errors: List[ReplayError],
    ) -> None:
        collection = self.collections.get(name)

        for index, record in enumerate(records):
            counts.attempted += 1
            try:
                if collection is None:
                    raise RestoreError(f"No collection registered for {name}")
                await collection.create(record)
            except RecordCreateError as e:
                counts.failed += 1
                errors.append(ReplayError(resource=name, index=index, message=e.message, kind=e.kind.value))
            except Exception as e:
                counts.failed += 1
                errors.append(ReplayError(resource=name, index=index, message=str(e) or type(e).__name__))
            else:
                counts.restored += 1

    async def restore(
        self,
        snapshot: Optional[SnapshotInput] = None,
        snapshot_id: Optional[str] = None,
        mode: RestoreMode = RestoreMode.REPLACE,
    ) -> RestoreSummary:
        """Restore collections from a snapshot.

        Args:
            snapshot: Inline snapshot (takes precedence)
            snapshot_id: Id to resolve via the snapshot store
            mode: replace clears every collection first; merge only inserts

        Returns:
            RestoreSummary with per-collection counts and per-record errors

        Raises:
            RestoreValidationError: if the snapshot cannot be resolved
            RestoreError: if clearing fails in replace mode
        """
        mode = RestoreMode(mode)
        document = await self.resolve(snapshot, snapshot_id)
        collections, warnings = self.extract_collections(document)

        logger.info(
            f"Starting restore ({mode.value}) of snapshot {document.get('id') or '<inline>'}: "
            f"{sum(len(v) for v in collections.values())} records"
        )

        if mode == RestoreMode.REPLACE:
            await self.clear_all()

        summary = {name: ResourceCounts() for name in COLLECTION_NAMES}
        errors: List[ReplayError] = []
        for name in COLLECTION_NAMES:
            await self._replay_collection(name, collections[name], summary[name], errors)

        result = RestoreSummary(
            restore_mode=mode,
            snapshot_id=document.get("id") if isinstance(document.get("id"), str) else None,
            timestamp=document.get("timestamp") if isinstance(document.get("timestamp"), str) else None,
            kind=document.get("kind") if isinstance(document.get("kind"), str) else None,
            summary=summary,
            warnings=warnings,
            errors=errors,
        )

        if errors:
            logger.warning(f"Restore finished with {len(errors)} failed records")
        else:
            logger.info("Restore complete")
        return result
