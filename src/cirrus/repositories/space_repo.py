"""Organization, space and stack repositories."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.org import (
    OrganizationRow,
    QuotaDefinitionRow,
    SpaceDeveloperRow,
    SpaceQuotaDefinitionRow,
    SpaceRow,
    StackRow,
)
from cirrus.repositories.base import BaseRepository


class SpaceRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, SpaceRow)

    async def get(self, guid: str) -> SpaceRow | None:
        return await self.get_by_id("guid", guid)

    async def is_developer(self, space_guid: str, user_id: str) -> bool:
        stmt = select(SpaceDeveloperRow).where(
            SpaceDeveloperRow.space_guid == space_guid,
            SpaceDeveloperRow.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_organization(self, space: SpaceRow) -> OrganizationRow | None:
        return await self.session.get(OrganizationRow, space.organization_guid)

    async def get_org_quota(self, organization: OrganizationRow) -> QuotaDefinitionRow | None:
        return await self.session.get(QuotaDefinitionRow, organization.quota_definition_guid)

    async def get_space_quota(self, space: SpaceRow) -> SpaceQuotaDefinitionRow | None:
        if not space.space_quota_definition_guid:
            return None
        return await self.session.get(SpaceQuotaDefinitionRow, space.space_quota_definition_guid)


class StackRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, StackRow)

    async def get(self, guid: str) -> StackRow | None:
        return await self.get_by_id("guid", guid)
