"""Periodic maintenance sweeps run under the distributed executor."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.models.enums import JobStatus
from cirrus.repositories.event_repo import EventRepository
from cirrus.repositories.job_repo import JobRepository

logger = logging.getLogger(__name__)


class EventsCleanup:
    """Delete audit events older than the retention cutoff."""

    def __init__(self, cutoff_age_days: int):
        self.cutoff_age_days = cutoff_age_days

    async def __call__(self, session: AsyncSession) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.cutoff_age_days)
        deleted = await EventRepository(session).delete_before(cutoff)
        logger.info("Deleted %d audit events older than %s", deleted, cutoff.isoformat())
        return deleted


class PendingJobsSweep:
    """Fail queued or running jobs that have not progressed within the timeout."""

    def __init__(self, timeout_minutes: int):
        self.timeout_minutes = timeout_minutes

    async def __call__(self, session: AsyncSession) -> int:
        now = datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=self.timeout_minutes)
        stale = await JobRepository(session).list_stale((JobStatus.QUEUED, JobStatus.RUNNING), cutoff)
        for job in stale:
            job.status = JobStatus.FAILED
            job.errors = [{
                "code": "JOB_TIMEOUT",
                "message": f"Job did not complete within {self.timeout_minutes} minutes",
                "timestamp": now.isoformat(),
            }]
        await session.flush()
        if stale:
            logger.info("Marked %d stale jobs failed", len(stale))
        return len(stale)
