"""Application to route association management."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.config import Settings, settings
from cirrus.db.models.app import AppRow
from cirrus.db.models.route import RouteMappingRow, RouteRow
from cirrus.errors.exceptions import (
    NotFoundError,
    RouteNotFoundError,
    RoutingFeatureDisabledError,
    SpaceMismatchError,
    UnsupportedRouteRelationError,
)
from cirrus.models.actor import Actor
from cirrus.repositories.app_repo import AppRepository
from cirrus.repositories.route_repo import RouteMappingRepository, RouteRepository
from cirrus.repositories.space_repo import SpaceRepository
from cirrus.services.collaborators import Collaborators
from cirrus.services.id_generator import generate_id
from cirrus.services.lifecycle.side_effects import PostCommitEffects
from cirrus.services.policy.access import AccessPolicy
from cirrus.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class RouteMappingCoordinator:
    def __init__(
        self,
        session: AsyncSession,
        actor: Actor,
        collaborators: Collaborators | None = None,
        config: Settings = settings,
        trace_id: str = "internal",
    ):
        self.session = session
        self.actor = actor
        self.config = config
        self.apps = AppRepository(session)
        self.routes = RouteRepository(session)
        self.mappings = RouteMappingRepository(session)
        self.spaces = SpaceRepository(session)
        self.access = AccessPolicy(session)
        self.effects = PostCommitEffects(session, actor, collaborators or Collaborators(), trace_id)

    async def add(self, app_guid: str, route_guid: str, app_port: int | None = None) -> AppRow:
        """Map a route to an app. Mapping an already-mapped pair succeeds without change."""
        app = await self.apps.get(app_guid)
        if app is None:
            raise NotFoundError("App", app_guid)
        await self.access.check(self.actor, app.space_guid, "read_related_object_for_update")

        route = await self.routes.get(route_guid)
        if route is None:
            raise RouteNotFoundError(route_guid)

        attrs = {"route": route.guid, "verb": "add", "relation": "routes", "related_guid": route.guid}
        async with UnitOfWork(self.session) as uow:
            space = await self.spaces.get(app.space_guid)
            if await self.mappings.find(app.guid, route.guid):
                logger.debug("Route %s already mapped to app %s", route.guid, app.guid)
                created = False
            else:
                self._check_relation(app, route)
                created = await self._insert(app, route, app_port)

            # The update is audited even when the pair was already mapped.
            self.effects.schedule_update(uow, app, space, attrs, uris_changed=created)
            if created:
                self._record_mapping(uow, app, space, route.guid, app_port)

        return app

    def _check_relation(self, app: AppRow, route: RouteRow) -> None:
        if route.port is not None and not self.config.tcp_routing_enabled:
            raise RoutingFeatureDisabledError()
        if route.route_service_url and not app.diego:
            raise UnsupportedRouteRelationError(route.guid)
        if route.space_guid != app.space_guid:
            raise SpaceMismatchError(route.guid)

    async def _insert(self, app: AppRow, route: RouteRow, app_port: int | None) -> bool:
        # A concurrent request may insert the same pair between the lookup and
        # this insert; the unique constraint turns that into a no-op.
        try:
            async with self.session.begin_nested():
                self.session.add(
                    RouteMappingRow(
                        guid=generate_id("rm_"),
                        app_guid=app.guid,
                        route_guid=route.guid,
                        app_port=app_port,
                    )
                )
        except IntegrityError:
            logger.debug("Concurrent mapping of route %s to app %s", route.guid, app.guid)
            return False
        logger.info("Mapped route %s to app %s", route.guid, app.guid)
        return True

    def _record_mapping(self, uow: UnitOfWork, app: AppRow, space, route_guid: str, app_port: int | None) -> None:
        events = self.effects.events

        async def record_map_route():
            await events.record_app_map_route(app, space, self.actor, route_guid, app_port)

        uow.after_commit(record_map_route)
