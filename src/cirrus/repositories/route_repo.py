"""Route and route mapping repositories."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.route import RouteMappingRow, RouteRow
from cirrus.repositories.base import BaseRepository


class RouteRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, RouteRow)

    async def get(self, guid: str) -> RouteRow | None:
        return await self.get_by_id("guid", guid)

    async def routes_for_app(self, app_guid: str) -> list[RouteRow]:
        stmt = (
            select(RouteRow)
            .join(RouteMappingRow, RouteMappingRow.route_guid == RouteRow.guid)
            .where(RouteMappingRow.app_guid == app_guid)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class RouteMappingRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, RouteMappingRow)

    async def find(self, app_guid: str, route_guid: str) -> RouteMappingRow | None:
        stmt = select(RouteMappingRow).where(
            RouteMappingRow.app_guid == app_guid,
            RouteMappingRow.route_guid == route_guid,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_app(self, app_guid: str) -> list[RouteMappingRow]:
        return await self.list_by_field("app_guid", app_guid)
