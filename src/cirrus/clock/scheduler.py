"""Background clock that drives periodic jobs through the distributed executor."""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cirrus.clock.distributed_executor import DistributedExecutor, JobBody
from cirrus.clock.jobs import EventsCleanup, PendingJobsSweep
from cirrus.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockJobSpec:
    name: str
    interval: float
    body: JobBody


def default_jobs(config: Settings) -> list[ClockJobSpec]:
    return [
        ClockJobSpec(
            name="events_cleanup",
            interval=config.events_cleanup_interval,
            body=EventsCleanup(config.events_cutoff_age_days),
        ),
        ClockJobSpec(
            name="pending_jobs",
            interval=config.pending_jobs_interval,
            body=PendingJobsSweep(config.pending_jobs_timeout_minutes),
        ),
    ]


async def run_clock_tick(
    executor: DistributedExecutor,
    jobs: list[ClockJobSpec],
    config: Settings,
) -> list[str]:
    """Offer every job to the executor once. Returns the names that ran."""
    ran: list[str] = []
    for job in jobs:
        try:
            if await executor.execute_job(
                name=job.name,
                interval=job.interval,
                fudge=config.clock_fudge,
                timeout=config.clock_timeout,
                body=job.body,
            ):
                ran.append(job.name)
        except Exception as exc:
            logger.exception("Clock job %s failed: %s", job.name, exc)
    return ran


async def run_clock(app, config: Settings) -> None:
    """Background task that ticks the clock for the lifetime of the app."""
    logger.info("Clock started (poll_interval=%ds)", config.clock_poll_interval)
    jobs = default_jobs(config)

    while True:
        try:
            await asyncio.sleep(config.clock_poll_interval)

            session_factory: async_sessionmaker[AsyncSession] | None = getattr(
                app.state, "db_session_factory", None
            )
            if not session_factory:
                continue

            ran = await run_clock_tick(DistributedExecutor(session_factory), jobs, config)
            if ran:
                logger.info("Clock ran jobs: %s", ", ".join(ran))

        except asyncio.CancelledError:
            logger.info("Clock stopped")
            break
        except Exception as exc:
            logger.exception("Clock error: %s", exc)
