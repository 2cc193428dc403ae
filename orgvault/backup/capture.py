"""Point-in-time capture of every collection."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from .models import (
    SNAPSHOT_KIND,
    TRIGGER_API,
    Snapshot,
    SnapshotMetadata,
    SnapshotWriteResult,
)
from .store import SnapshotStore
from .._storage import BaseCollection
from ..errors import CaptureError
from .._utils import logger, utc_now_iso


class SnapshotOrchestrator:
    """Fan out to every source, assemble one Snapshot, hand it to the store.

    A capture is all-or-nothing: if any source fails to enumerate, nothing
    is written and ``CaptureError`` is raised.
    """

    def __init__(
        self,
        collections: Mapping[str, BaseCollection],
        store: SnapshotStore,
        extra_sources: Optional[Sequence[Any]] = None,
        capture_timeout: Optional[float] = None,
    ):
        """Initialize orchestrator.

        Args:
            collections: Record collections keyed by name
            store: Snapshot store receiving the result
            extra_sources: Read-only sources with ``name`` and ``summarize()``;
                each summary is stored as-is under ``data.<name>``
            capture_timeout: Seconds allowed for enumeration; None waits forever
        """
        self.collections = collections
        self.store = store
        self.extra_sources = list(extra_sources or [])
        self.capture_timeout = capture_timeout

    def _readers(self) -> Dict[str, Callable[[], Awaitable[Any]]]:
        readers: Dict[str, Callable[[], Awaitable[Any]]] = {
            name: collection.list for name, collection in self.collections.items()
        }
        for source in self.extra_sources:
            readers[source.name] = source.summarize
        return readers

    @staticmethod
    async def _read(read: Callable[[], Awaitable[Any]]) -> Any:
        return await read()

    async def _enumerate(self, readers: Dict[str, Callable[[], Awaitable[Any]]]) -> List[Any]:
        gathered = asyncio.gather(
            *(self._read(read) for read in readers.values()),
            return_exceptions=True,
        )
        if self.capture_timeout is None:
            return await gathered
        return await asyncio.wait_for(gathered, timeout=self.capture_timeout)

    async def capture(
        self,
        trigger: str = TRIGGER_API,
        actor: Optional[str] = None,
        role: Optional[str] = None,
    ) -> SnapshotWriteResult:
        """Capture all sources and persist the snapshot.

        Returns:
            SnapshotWriteResult from the store

        Raises:
            CaptureError: if any source fails, enumeration times out, or the write fails
        """
        timestamp = utc_now_iso()
        readers = self._readers()
        names = list(readers)
        logger.info(f"Starting capture ({trigger}) of {len(names)} sources")

        try:
            results = await self._enumerate(readers)
        except asyncio.TimeoutError as e:
            raise CaptureError(f"Capture timed out after {self.capture_timeout}s") from e

        failures = [
            (name, result)
            for name, result in zip(names, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            for name, exc in failures:
                logger.error(f"Capture failed to enumerate {name}: {exc}")
            name, exc = failures[0]
            raise CaptureError(f"Failed to enumerate {name}: {exc}") from exc

        snapshot = Snapshot(
            timestamp=timestamp,
            kind=SNAPSHOT_KIND,
            data=dict(zip(names, results)),
            metadata=SnapshotMetadata(trigger=trigger, actor=actor, role=role),
        )

        try:
            stored = await self.store.write(snapshot)
        except Exception as e:
            raise CaptureError(f"Failed to persist snapshot: {e}") from e

        counts = ", ".join(f"{name}={len(snapshot.data[name])}" for name in self.collections)
        logger.info(f"Capture complete: {stored.id} ({counts})")
        return stored
