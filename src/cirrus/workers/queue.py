"""Job queue management using Redis or the jobs table alone."""

import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.job import JobRow
from cirrus.models.enums import JobStatus
from cirrus.repositories.job_repo import JobRepository
from cirrus.services.id_generator import generate_id

logger = logging.getLogger(__name__)


async def enqueue_job(
    session: AsyncSession,
    job_type: str,
    app_guid: str | None,
    trace_id: str,
    payload: dict | None = None,
    redis=None,
) -> JobRow:
    """Create a job record and optionally push it to Redis.

    Consumers must treat jobs as at-least-once: the Redis push is not part of
    the database transaction.
    """
    job_id = generate_id("job_")

    repo = JobRepository(session)
    job = await repo.create(
        job_id=job_id,
        job_type=job_type,
        app_guid=app_guid,
        status=JobStatus.QUEUED,
        payload=payload or {},
        trace_id=trace_id,
        errors=None,
    )

    if redis:
        await redis.rpush(
            f"cirrus:jobs:{job_type}",
            json.dumps({"job_id": job_id, "payload": payload or {}}),
        )

    logger.debug("Queued %s job %s for app %s", job_type, job_id, app_guid)
    return job
