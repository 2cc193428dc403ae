"""Tests for JobHistory."""

import pytest

from orgvault.backup.jobs import JobHistory
from orgvault.backup.models import JobStatus


def test_start_records_running_job():
    history = JobHistory()
    job = history.start("api")

    assert job.status == JobStatus.RUNNING
    assert job.trigger == "api"
    assert job.finished_at is None
    assert history.latest() is job
    assert history.is_running()


def test_succeed_and_fail_transitions():
    history = JobHistory()

    ok = history.start("scheduler")
    history.succeed(ok.id, "backup-1")
    assert ok.status == JobStatus.SUCCESS
    assert ok.backup_id == "backup-1"
    assert ok.finished_at is not None
    assert not history.is_running()

    bad = history.start("scheduler")
    history.fail(bad.id, "db down")
    assert bad.status == JobStatus.ERROR
    assert bad.message == "db down"
    assert not history.is_running()


def test_newest_first_and_filtering():
    history = JobHistory()
    first = history.start("api")
    history.succeed(first.id, "b1")
    second = history.start("scheduler")
    history.fail(second.id, "boom")
    third = history.start("api")

    assert [job.id for job in history.list()] == [third.id, second.id, first.id]
    assert [job.id for job in history.list(status=JobStatus.ERROR)] == [second.id]
    assert [job.id for job in history.list(limit=2)] == [third.id, second.id]


def test_list_returns_copies():
    history = JobHistory()
    job = history.start("api")

    listed = history.list()[0]
    listed.status = JobStatus.SUCCESS

    assert job.status == JobStatus.RUNNING


def test_oldest_jobs_are_evicted():
    history = JobHistory(max_jobs=3)
    jobs = [history.start("scheduler") for _ in range(5)]

    kept = [job.id for job in history.list()]
    assert kept == [jobs[4].id, jobs[3].id, jobs[2].id]


def test_transition_of_evicted_job_is_ignored():
    history = JobHistory(max_jobs=1)
    old = history.start("api")
    history.start("api")

    assert history.succeed(old.id, "b1") is None
    assert old.status == JobStatus.RUNNING


def test_invalid_size():
    with pytest.raises(ValueError, match="max_jobs must be positive"):
        JobHistory(max_jobs=0)


def test_clear():
    history = JobHistory()
    history.start("api")
    history.clear()

    assert history.latest() is None
    assert history.list() == []
