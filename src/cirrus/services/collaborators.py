"""Side-effect collaborators used by the lifecycle core.

Each default implementation writes to the store and, where Redis is
configured, pushes a job for the owning subsystem. Their network-visible
effects are owned by those subsystems and must be safe to retry.
"""

import hashlib
import uuid
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.models.app import AppRow, PackageRow
from cirrus.models.actor import Actor
from cirrus.models.enums import AppState, EventType, JobType, PackageState, PackageType
from cirrus.repositories.event_repo import EventRepository
from cirrus.repositories.route_repo import RouteRepository
from cirrus.services.id_generator import generate_id
from cirrus.workers.queue import enqueue_job


class PackageCreate:
    async def create(self, session: AsyncSession, app: AppRow, image: str) -> PackageRow:
        """Register a docker package; docker packages are ready as soon as they exist."""
        package = PackageRow(
            guid=generate_id("pkg_"),
            app_guid=app.guid,
            type=PackageType.DOCKER,
            state="READY",
            docker_image=image,
        )
        session.add(package)
        app.package_hash = hashlib.sha1(image.encode()).hexdigest()
        app.package_state = PackageState.PENDING
        return package


class _PlacementJobs:
    def __init__(self, redis=None):
        self.redis = redis

    async def _enqueue(self, session: AsyncSession, job_type: JobType, app: AppRow, trace_id: str, **payload):
        return await enqueue_job(
            session,
            job_type=job_type,
            app_guid=app.guid,
            trace_id=trace_id,
            payload={"version": app.version, **payload},
            redis=self.redis,
        )


class AppStart(_PlacementJobs):
    async def start(self, session: AsyncSession, app: AppRow, actor: Actor, trace_id: str) -> None:
        app.state = AppState.STARTED
        app.version = uuid.uuid4().hex
        await EventRepository(session).record_app_state_change(app, actor, EventType.APP_START)
        await self._enqueue(session, JobType.PLACEMENT_START, app, trace_id, instances=app.instances)


class AppStop(_PlacementJobs):
    async def stop(self, session: AsyncSession, app: AppRow, actor: Actor, trace_id: str) -> None:
        app.state = AppState.STOPPED
        await EventRepository(session).record_app_state_change(app, actor, EventType.APP_STOP)
        await self._enqueue(session, JobType.PLACEMENT_STOP, app, trace_id)


class StagingRequest(_PlacementJobs):
    async def stage(self, session: AsyncSession, app: AppRow, trace_id: str) -> str:
        job = await self._enqueue(session, JobType.STAGE_APP, app, trace_id, package_hash=app.package_hash)
        return job.job_id


class Placement(_PlacementJobs):
    async def update_uris(self, session: AsyncSession, app: AppRow, trace_id: str) -> None:
        routes = await RouteRepository(session).routes_for_app(app.guid)
        await self._enqueue(session, JobType.PLACEMENT_UPDATE_URIS, app, trace_id, uris=[r.uri for r in routes])


@dataclass
class Collaborators:
    package_create: PackageCreate = field(default_factory=PackageCreate)
    app_start: AppStart = field(default_factory=AppStart)
    app_stop: AppStop = field(default_factory=AppStop)
    staging: StagingRequest = field(default_factory=StagingRequest)
    placement: Placement = field(default_factory=Placement)

    @classmethod
    def with_redis(cls, redis) -> "Collaborators":
        return cls(
            app_start=AppStart(redis),
            app_stop=AppStop(redis),
            staging=StagingRequest(redis),
            placement=Placement(redis),
        )
