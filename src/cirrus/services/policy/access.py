"""Write-access checks for application operations."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.errors.exceptions import AuthorizationError
from cirrus.models.actor import Actor
from cirrus.repositories.space_repo import SpaceRepository

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Admins may act anywhere; other actors must be developers of the space."""

    def __init__(self, session: AsyncSession):
        self.spaces = SpaceRepository(session)

    async def can_write(self, actor: Actor, space_guid: str) -> bool:
        if actor.is_admin:
            return True
        return await self.spaces.is_developer(space_guid, actor.user_id)

    async def check(self, actor: Actor, space_guid: str, operation: str) -> None:
        if not await self.can_write(actor, space_guid):
            logger.info("Denied %s for user %s in space %s", operation, actor.user_id, space_guid)
            raise AuthorizationError()
