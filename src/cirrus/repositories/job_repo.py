"""Job repository."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.job import JobRow
from cirrus.repositories.base import BaseRepository


class JobRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, JobRow)

    async def list_stale(self, statuses: tuple[str, ...], updated_before: datetime) -> list[JobRow]:
        stmt = select(JobRow).where(
            JobRow.status.in_(statuses),
            JobRow.updated_at < updated_before,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
