"""Tests for periodic clock jobs and the clock tick."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from cirrus.clock.distributed_executor import DistributedExecutor
from cirrus.clock.jobs import EventsCleanup, PendingJobsSweep
from cirrus.clock.scheduler import ClockJobSpec, default_jobs, run_clock_tick
from cirrus.config import Settings
from cirrus.db.models.event import EventRow
from cirrus.db.models.job import JobRow
from cirrus.models.enums import JobStatus


def _event(guid: str, age: timedelta) -> EventRow:
    return EventRow(
        guid=guid,
        type="audit.app.update",
        actor="dev-user",
        actee="app-1",
        actee_type="app",
        actee_name="foo",
        metadata_={},
        timestamp=datetime.now(timezone.utc) - age,
    )


def _job(job_id: str, status: str, age: timedelta) -> JobRow:
    stamp = datetime.now(timezone.utc) - age
    return JobRow(
        job_id=job_id,
        job_type="stage_app",
        app_guid="app-1",
        status=status,
        payload={},
        trace_id="trace",
        created_at=stamp,
        updated_at=stamp,
    )


@pytest.mark.asyncio
async def test_events_cleanup_deletes_only_old_events(db_session):
    db_session.add_all([
        _event("evt_old", timedelta(days=40)),
        _event("evt_new", timedelta(days=1)),
    ])
    await db_session.commit()

    deleted = await EventsCleanup(cutoff_age_days=31)(db_session)
    await db_session.commit()

    assert deleted == 1
    remaining = (await db_session.execute(select(EventRow.guid))).scalars().all()
    assert remaining == ["evt_new"]


@pytest.mark.asyncio
async def test_pending_jobs_sweep_fails_stale_jobs(db_session):
    db_session.add_all([
        _job("job_stale", JobStatus.QUEUED, timedelta(hours=1)),
        _job("job_running", JobStatus.RUNNING, timedelta(hours=2)),
        _job("job_fresh", JobStatus.QUEUED, timedelta(minutes=1)),
        _job("job_done", JobStatus.SUCCEEDED, timedelta(hours=3)),
    ])
    await db_session.commit()

    swept = await PendingJobsSweep(timeout_minutes=15)(db_session)
    await db_session.commit()

    assert swept == 2
    statuses = {
        job.job_id: job.status
        for job in (await db_session.execute(select(JobRow))).scalars().all()
    }
    assert statuses == {
        "job_stale": JobStatus.FAILED,
        "job_running": JobStatus.FAILED,
        "job_fresh": JobStatus.QUEUED,
        "job_done": JobStatus.SUCCEEDED,
    }
    stale = await db_session.get(JobRow, "job_stale")
    assert stale.errors[0]["code"] == "JOB_TIMEOUT"


def test_default_jobs_follow_settings():
    config = Settings(events_cleanup_interval=100, pending_jobs_interval=50)
    jobs = {job.name: job for job in default_jobs(config)}
    assert set(jobs) == {"events_cleanup", "pending_jobs"}
    assert jobs["events_cleanup"].interval == 100
    assert jobs["pending_jobs"].interval == 50


@pytest.mark.asyncio
async def test_clock_tick_continues_past_failing_job(session_factory):
    seen = []

    async def broken(session):
        raise RuntimeError("broken job")

    async def healthy(session):
        seen.append("healthy")

    jobs = [
        ClockJobSpec(name="broken", interval=60, body=broken),
        ClockJobSpec(name="healthy", interval=60, body=healthy),
    ]

    ran = await run_clock_tick(DistributedExecutor(session_factory), jobs, Settings())

    assert ran == ["healthy"]
    assert seen == ["healthy"]
