"""Cross-process mutual exclusion for named periodic jobs.

Every process runs the same clock; the ``clock_jobs`` row for a job name is
the only coordination point. Holding its row lock for the length of a run
keeps other processes out, and the recorded timestamps decide whether a run
is due or whether a previous runner is presumed dead.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cirrus.db.base import as_utc
from cirrus.db.models.clock_job import ClockJobRow
from cirrus.repositories.clock_job_repo import ClockJobRepository

logger = logging.getLogger(__name__)

JobBody = Callable[[AsyncSession], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DistributedExecutor:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def execute_job(
        self,
        name: str,
        interval: float,
        fudge: float,
        timeout: float | None,
        body: JobBody,
    ) -> bool:
        """Run ``body`` if the named job is due and no live runner holds it.

        ``body`` receives the session holding the job lock and runs inside
        that transaction. If it raises, both timestamps are rolled back and
        the exception propagates. Returns whether the body ran.
        """
        await self._ensure_job_record_exists(name)

        async with self.session_factory() as session:
            async with session.begin():
                job = await ClockJobRepository(session).lock(name)
                now = self.clock()

                if not self._need_to_run_job(job, now, interval, fudge, timeout):
                    return False

                logger.info("Queueing %s at %s", name, now.isoformat())
                job.last_started_at = now
                await session.flush()

                await body(session)

                job.last_completed_at = self.clock()
                await session.flush()

        return True

    async def _ensure_job_record_exists(self, name: str) -> None:
        async with self.session_factory() as session:
            repo = ClockJobRepository(session)
            if await repo.get(name) is not None:
                return
            session.add(ClockJobRow(name=name))
            try:
                await session.commit()
            except IntegrityError:
                # Another process created the record first.
                await session.rollback()

    def _need_to_run_job(
        self,
        job: ClockJobRow,
        now: datetime,
        interval: float,
        fudge: float,
        timeout: float | None,
    ) -> bool:
        last_started_at = as_utc(job.last_started_at)
        last_completed_at = as_utc(job.last_completed_at)
        logger.info(
            "Job %s last started at %s. Last completed at %s Interval: %s",
            job.name, last_started_at, last_completed_at, interval,
        )
        if last_started_at is None:
            return True

        interval_has_elapsed = now >= last_started_at + timedelta(seconds=interval - fudge)
        last_run_completed = last_completed_at is not None and last_completed_at >= last_started_at
        timeout_elapsed = timeout is not None and now >= last_started_at + timedelta(seconds=timeout)

        return interval_has_elapsed and (last_run_completed or timeout_elapsed)
