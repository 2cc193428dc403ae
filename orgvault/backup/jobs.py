"""Bounded in-memory history of capture jobs."""

from collections import deque
from typing import Deque, List, Optional

from .models import JobRun, JobStatus
from .._utils import generate_id, logger, utc_now_iso

DEFAULT_MAX_JOBS = 200


class JobHistory:
    """Most-recent-first ring of JobRun records.

    An operational log, not an audit trail: the oldest entries are evicted
    once ``max_jobs`` is reached and nothing survives a restart.
    """

    def __init__(self, max_jobs: int = DEFAULT_MAX_JOBS):
        if max_jobs <= 0:
            raise ValueError(f"max_jobs must be positive, got {max_jobs}")
        self.max_jobs = max_jobs
        self._jobs: Deque[JobRun] = deque(maxlen=max_jobs)

    def latest(self) -> Optional[JobRun]:
        return self._jobs[0] if self._jobs else None

    def is_running(self) -> bool:
        latest = self.latest()
        return latest is not None and latest.status == JobStatus.RUNNING

    def start(self, trigger: str) -> JobRun:
        """Record a new running job."""
        job = JobRun(id=generate_id(), started_at=utc_now_iso(), trigger=trigger)
        self._jobs.appendleft(job)
        logger.debug(f"Job {job.id} started ({trigger})")
        return job

    def _get(self, job_id: str) -> Optional[JobRun]:
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def succeed(self, job_id: str, backup_id: str) -> Optional[JobRun]:
        job = self._get(job_id)
        if job is None:
            logger.warning(f"Job {job_id} no longer in history; success not recorded")
            return None
        job.status = JobStatus.SUCCESS
        job.backup_id = backup_id
        job.finished_at = utc_now_iso()
        return job

    def fail(self, job_id: str, message: str) -> Optional[JobRun]:
        job = self._get(job_id)
        if job is None:
            logger.warning(f"Job {job_id} no longer in history; failure not recorded")
            return None
        job.status = JobStatus.ERROR
        job.message = message
        job.finished_at = utc_now_iso()
        return job

    def list(self, status: Optional[JobStatus] = None, limit: Optional[int] = None) -> List[JobRun]:
        """Copies of the recorded jobs, newest first."""
        jobs = [job.model_copy() for job in self._jobs if status is None or job.status == status]
        return jobs[:limit] if limit is not None else jobs

    def clear(self) -> None:
        self._jobs.clear()
