"""Application and lifecycle data repositories."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.app import AppRow, LifecycleDataRow, PackageRow, ServiceBindingRow
from cirrus.db.models.org import SpaceRow
from cirrus.models.enums import AppState
from cirrus.repositories.base import BaseRepository


class AppRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, AppRow)

    async def get(self, guid: str) -> AppRow | None:
        return await self.get_by_id("guid", guid)

    async def lock(self, guid: str) -> AppRow | None:
        return await self.get_for_update("guid", guid)

    async def name_taken(self, space_guid: str, name: str, exclude_guid: str | None = None) -> bool:
        stmt = select(func.count()).select_from(AppRow).where(
            AppRow.space_guid == space_guid,
            AppRow.name == name,
        )
        if exclude_guid:
            stmt = stmt.where(AppRow.guid != exclude_guid)
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def started_usage_in_space(self, space_guid: str, exclude_guid: str | None = None) -> tuple[int, int]:
        """Return (memory MB, instance count) consumed by started apps in a space."""
        stmt = select(
            func.coalesce(func.sum(AppRow.memory * AppRow.instances), 0),
            func.coalesce(func.sum(AppRow.instances), 0),
        ).where(AppRow.space_guid == space_guid, AppRow.state == AppState.STARTED)
        if exclude_guid:
            stmt = stmt.where(AppRow.guid != exclude_guid)
        memory, instances = (await self.session.execute(stmt)).one()
        return int(memory), int(instances)

    async def started_usage_in_org(self, organization_guid: str, exclude_guid: str | None = None) -> tuple[int, int]:
        """Return (memory MB, instance count) consumed by started apps in an organization."""
        stmt = (
            select(
                func.coalesce(func.sum(AppRow.memory * AppRow.instances), 0),
                func.coalesce(func.sum(AppRow.instances), 0),
            )
            .join(SpaceRow, SpaceRow.guid == AppRow.space_guid)
            .where(SpaceRow.organization_guid == organization_guid, AppRow.state == AppState.STARTED)
        )
        if exclude_guid:
            stmt = stmt.where(AppRow.guid != exclude_guid)
        memory, instances = (await self.session.execute(stmt)).one()
        return int(memory), int(instances)


class LifecycleDataRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, LifecycleDataRow)

    async def get(self, app_guid: str) -> LifecycleDataRow | None:
        return await self.get_by_id("app_guid", app_guid)

    async def lock(self, app_guid: str) -> LifecycleDataRow | None:
        return await self.get_for_update("app_guid", app_guid)


class PackageRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, PackageRow)

    async def list_for_app(self, app_guid: str) -> list[PackageRow]:
        return await self.list_by_field("app_guid", app_guid)


class ServiceBindingRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ServiceBindingRow)

    async def list_for_app(self, app_guid: str) -> list[ServiceBindingRow]:
        return await self.list_by_field("app_guid", app_guid)
