"""Audit event repository for application lifecycle events."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.app import AppRow
from cirrus.db.models.event import EventRow
from cirrus.db.models.org import SpaceRow
from cirrus.models.actor import Actor
from cirrus.models.enums import EventType
from cirrus.repositories.base import BaseRepository
from cirrus.services.id_generator import generate_id


class EventRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, EventRow)

    async def record_app_create(self, app: AppRow, space: SpaceRow, actor: Actor, request_attrs: dict) -> EventRow:
        return await self._record(EventType.APP_CREATE, app, space, actor, {"request": request_attrs})

    async def record_app_update(self, app: AppRow, space: SpaceRow, actor: Actor, request_attrs: dict) -> EventRow:
        return await self._record(EventType.APP_UPDATE, app, space, actor, {"request": request_attrs})

    async def record_app_delete_request(
        self, app: AppRow, space: SpaceRow, actor: Actor, recursive: bool
    ) -> EventRow:
        return await self._record(EventType.APP_DELETE_REQUEST, app, space, actor, {"request": {"recursive": recursive}})

    async def record_app_map_route(
        self, app: AppRow, space: SpaceRow, actor: Actor, route_guid: str, app_port: int | None
    ) -> EventRow:
        metadata = {"route_guid": route_guid, "app_port": app_port}
        return await self._record(EventType.APP_MAP_ROUTE, app, space, actor, metadata)

    async def record_app_state_change(self, app: AppRow, actor: Actor, event_type: EventType) -> EventRow:
        return await self._record(event_type, app, None, actor, {"state": app.state})

    async def delete_before(self, cutoff: datetime) -> int:
        result = await self.session.execute(delete(EventRow).where(EventRow.timestamp < cutoff))
        return result.rowcount or 0

    async def _record(
        self,
        event_type: EventType,
        app: AppRow,
        space: SpaceRow | None,
        actor: Actor,
        metadata: dict[str, Any],
    ) -> EventRow:
        return await self.create(
            guid=generate_id("evt_"),
            type=event_type,
            actor=actor.user_id,
            actor_type="user",
            actor_name=actor.email,
            actee=app.guid,
            actee_type="app",
            actee_name=app.name,
            space_guid=space.guid if space else app.space_guid,
            organization_guid=space.organization_guid if space else None,
            metadata_=metadata,
            timestamp=datetime.now(timezone.utc),
        )
