"""Periodic backups with a single-flight guard."""

import asyncio
from typing import Optional, Set

from .capture import SnapshotOrchestrator
from .jobs import JobHistory
from .models import TRIGGER_SCHEDULER, JobRun, SnapshotWriteResult
from .._utils import logger


async def tracked_capture(
    orchestrator: SnapshotOrchestrator,
    history: JobHistory,
    job: JobRun,
    actor: Optional[str] = None,
    role: Optional[str] = None,
) -> SnapshotWriteResult:
    """Run one capture for a job already recorded as running.

    The job leaves ``running`` exactly once, whatever the outcome; the
    capture error (or cancellation) is re-raised after it is recorded.
    """
    try:
        result = await orchestrator.capture(trigger=job.trigger, actor=actor, role=role)
    except asyncio.CancelledError:
        history.fail(job.id, "Capture cancelled.")
        raise
    except Exception as e:
        history.fail(job.id, str(e) or "Backup failed.")
        raise
    history.succeed(job.id, result.id)
    return result


class BackupScheduler:
    """Fire a capture every ``interval`` seconds.

    Ticks run as separate tasks so a slow capture never delays the timer;
    a tick that finds the newest job still running is skipped.
    """

    def __init__(
        self,
        orchestrator: SnapshotOrchestrator,
        history: JobHistory,
        interval: float = 900.0,
        initial_delay: float = 2.0,
    ):
        self.orchestrator = orchestrator
        self.history = history
        self.interval = interval
        self.initial_delay = initial_delay

        self._timer_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._inflight: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def start(self, interval: Optional[float] = None) -> bool:
        """Start the timer. No-op if already started.

        Must be called from a running event loop.
        """
        if self.is_running:
            return False
        if interval is not None:
            if interval <= 0:
                raise ValueError(f"interval must be positive, got {interval}")
            self.interval = interval

        self._stop_event.clear()
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(f"Backup scheduler started (every {self.interval}s)")
        return True

    async def stop(self) -> None:
        """Cancel the next tick and wait for in-flight captures to finish."""
        if self._timer_task is None:
            return

        self._stop_event.set()
        await self._timer_task
        self._timer_task = None

        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
        logger.info("Backup scheduler stopped")

    async def _timer_loop(self) -> None:
        delay = self.initial_delay
        while True:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                return
            except asyncio.TimeoutError:
                pass
            self._launch_tick()
            delay = self.interval

    def _launch_tick(self) -> None:
        task = asyncio.create_task(self.run_once())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def run_once(self, trigger: str = TRIGGER_SCHEDULER) -> Optional[JobRun]:
        """Run one guarded capture.

        Returns:
            The finished JobRun, or None if the tick was skipped
        """
        if self.history.is_running():
            latest = self.history.latest()
            logger.warning(f"Skipping scheduled backup: job {latest.id} is still running")
            return None

        job = self.history.start(trigger)
        try:
            result = await tracked_capture(self.orchestrator, self.history, job)
        except Exception as e:
            logger.error(f"Scheduled backup failed: {e}")
            return job

        logger.info(f"Scheduled backup stored: {result.id}")
        return job
