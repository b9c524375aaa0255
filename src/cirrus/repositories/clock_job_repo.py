"""Clock job repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.clock_job import ClockJobRow
from cirrus.repositories.base import BaseRepository


class ClockJobRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ClockJobRow)

    async def get(self, name: str) -> ClockJobRow | None:
        return await self.get_by_id("name", name)

    async def lock(self, name: str) -> ClockJobRow | None:
        return await self.get_for_update("name", name)
