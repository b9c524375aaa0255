"""Post-commit effects shared by app updates and route mapping."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.app import AppRow
from cirrus.db.models.org import SpaceRow
from cirrus.models.actor import Actor
from cirrus.models.enums import AppState, PackageState
from cirrus.repositories.event_repo import EventRepository
from cirrus.services.collaborators import Collaborators
from cirrus.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def needs_staging(app: AppRow) -> bool:
    """A started app with a package but no current droplet must be (re)staged."""
    if app.state != AppState.STARTED or not app.package_hash:
        return False
    return app.droplet_guid is None or app.package_state == PackageState.PENDING


@dataclass
class StagingOutcome:
    job_id: str | None = None


class PostCommitEffects:
    def __init__(self, session: AsyncSession, actor: Actor, collaborators: Collaborators, trace_id: str):
        self.session = session
        self.actor = actor
        self.collaborators = collaborators
        self.trace_id = trace_id
        self.events = EventRepository(session)

    def schedule_staging(self, uow: UnitOfWork, app: AppRow) -> StagingOutcome:
        outcome = StagingOutcome()

        async def request_staging():
            outcome.job_id = await self.collaborators.staging.stage(self.session, app, self.trace_id)
            logger.info("Staging requested for app %s (job=%s)", app.guid, outcome.job_id)

        uow.after_commit(request_staging)
        return outcome

    def schedule_update(
        self,
        uow: UnitOfWork,
        app: AppRow,
        space: SpaceRow,
        request_attrs: dict,
        uris_changed: bool = False,
    ) -> None:
        if uris_changed and app.state == AppState.STARTED:
            async def propagate_uris():
                await self.collaborators.placement.update_uris(self.session, app, self.trace_id)

            uow.after_commit(propagate_uris)

        async def record_update():
            await self.events.record_app_update(app, space, self.actor, request_attrs)

        uow.after_commit(record_update)
