"""Transactional create / update / delete of applications.

Concurrent updates to one app are serialized by row locks on the app and its
lifecycle data, taken inside the update transaction. Staging and audit
records are issued only after that transaction commits.
"""

import logging
import uuid
from contextlib import contextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.config import Settings, settings
from cirrus.db.models.app import AppRow, LifecycleDataRow
from cirrus.db.models.org import SpaceRow
from cirrus.errors.exceptions import (
    AssociationNotEmptyError,
    LifecycleTypeConflictError,
    NotFoundError,
    ValidationError,
)
from cirrus.models.actor import Actor
from cirrus.models.app import AppChangeSet, AppSummary, LifecycleResult
from cirrus.models.enums import AppState, PackageState
from cirrus.repositories.app_repo import (
    AppRepository,
    LifecycleDataRepository,
    PackageRepository,
    ServiceBindingRepository,
)
from cirrus.repositories.event_repo import EventRepository
from cirrus.repositories.route_repo import RouteMappingRepository
from cirrus.repositories.space_repo import SpaceRepository, StackRepository
from cirrus.services.collaborators import Collaborators
from cirrus.services.lifecycle import lifecycle_data
from cirrus.services.lifecycle.lifecycle_data import BuildpackLifecycle, DockerLifecycle, Lifecycle
from cirrus.services.lifecycle.side_effects import PostCommitEffects, StagingOutcome, needs_staging
from cirrus.services.lifecycle.validation import (
    AppValidator,
    validate_buildpack,
    validate_package_is_uploaded,
)
from cirrus.services.policy.access import AccessPolicy
from cirrus.services.policy.ssh import SSHAccessPolicy
from cirrus.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

PORTS_UNKNOWN_WARNING = (
    "App ports have changed but are unknown. "
    "The app should now listen on the port specified by environment variable PORT."
)

# change-set field -> app column, applied verbatim when present
_DIRECT_FIELDS = (
    "name",
    "memory",
    "instances",
    "disk_quota",
    "state",
    "command",
    "health_check_type",
    "health_check_timeout",
    "diego",
    "enable_ssh",
    "ports",
)


class AppLifecycle:
    """Create, update and delete applications for one actor."""

    def __init__(
        self,
        session: AsyncSession,
        actor: Actor,
        collaborators: Collaborators | None = None,
        config: Settings = settings,
        trace_id: str = "internal",
        trigger_staging: bool = True,
    ):
        self.session = session
        self.actor = actor
        self.collaborators = collaborators or Collaborators()
        self.config = config
        self.trace_id = trace_id
        self.trigger_staging = trigger_staging

        self.apps = AppRepository(session)
        self.lifecycle_rows = LifecycleDataRepository(session)
        self.spaces = SpaceRepository(session)
        self.stacks = StackRepository(session)
        self.ssh_policy = SSHAccessPolicy(config.allow_app_ssh_access)
        self.access = AccessPolicy(session)
        self.validator = AppValidator(session, config)
        self.effects = PostCommitEffects(session, actor, self.collaborators, trace_id)

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    async def create(self, change_set: AppChangeSet) -> LifecycleResult:
        logger.debug("app.create attributes=%s", change_set.redacted())
        if not change_set.space_guid:
            raise ValidationError("space_guid is required")
        space = await self._require_space(change_set.space_guid)
        self.ssh_policy.enforce(change_set.enable_ssh, space, self.actor)

        staging = StagingOutcome()
        async with UnitOfWork(self.session) as uow:
            guid = str(uuid.uuid4())
            lifecycle = await self._initial_lifecycle(change_set, space)
            app = self._new_app_row(guid, space, change_set)
            lifecycle_row = lifecycle_data.to_row(guid, lifecycle)
            self.session.add_all([app, lifecycle_row])

            match lifecycle:
                case DockerLifecycle(image=image) if image:
                    await self.collaborators.package_create.create(self.session, app, image)
                case BuildpackLifecycle() | DockerLifecycle():
                    pass

            validate_buildpack(lifecycle, self.config)
            validate_package_is_uploaded(app)
            with self._no_autoflush():
                await self.validator.validate(app, lifecycle, change_set.provided_fields(), is_new=True)

            await self.session.flush()
            await self.access.check(self.actor, space.guid, "create")

            events = EventRepository(self.session)
            request_attrs = change_set.redacted()

            async def record_create():
                await events.record_app_create(app, space, self.actor, request_attrs)

            uow.after_commit(record_create)
            staging_needed = needs_staging(app)
            if staging_needed and self.trigger_staging:
                staging = self.effects.schedule_staging(uow, app)

        logger.info("Created app %s (%s) in space %s", app.guid, app.name, space.guid)
        return LifecycleResult(
            app=self._summary(app, lifecycle_row),
            needs_staging=staging_needed and not self.trigger_staging,
            staging_job_id=staging.job_id,
        )

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------

    async def update(self, guid: str, change_set: AppChangeSet) -> LifecycleResult:
        logger.debug("app.update guid=%s attributes=%s", guid, change_set.redacted())
        current = await self.apps.get(guid)
        if current is None:
            raise NotFoundError("App", guid)
        current_space = await self._require_space(current.space_guid)

        # Fail fast before any lock is taken.
        self.ssh_policy.enforce(change_set.enable_ssh, current_space, self.actor)
        warnings = self._port_warnings(current, change_set)

        staging = StagingOutcome()
        async with UnitOfWork(self.session) as uow:
            app = await self.apps.lock(guid)
            lifecycle_row = await self.lifecycle_rows.lock(guid)
            if app is None or lifecycle_row is None:
                raise NotFoundError("App", guid)

            await self.access.check(self.actor, app.space_guid, "read_for_update")
            lifecycle_data.ensure_type_unchanged(lifecycle_data.from_row(lifecycle_row), change_set)

            was_diego = app.diego
            changed = change_set.provided_fields()
            await self._apply(app, lifecycle_row, change_set)
            lifecycle = lifecycle_data.from_row(lifecycle_row)

            validate_package_is_uploaded(app)
            with self._no_autoflush():
                await self.validator.validate(app, lifecycle, changed, is_new=False, was_diego=was_diego)
            validate_buildpack(lifecycle, self.config)

            await self.session.flush()

            if change_set.provided("state"):
                match AppState(app.state):
                    case AppState.STARTED:
                        await self.collaborators.app_start.start(self.session, app, self.actor, self.trace_id)
                    case AppState.STOPPED:
                        await self.collaborators.app_stop.stop(self.session, app, self.actor, self.trace_id)
                await self.session.flush()

            # The space may have moved; authorize against where the app is now.
            await self.access.check(self.actor, app.space_guid, "update")

            space = await self._require_space(app.space_guid)
            staging_needed = change_set.provided("state") and needs_staging(app)
            if staging_needed and self.trigger_staging:
                staging = self.effects.schedule_staging(uow, app)
            self.effects.schedule_update(uow, app, space, change_set.redacted())

        logger.info("Updated app %s fields=%s", guid, sorted(changed))
        return LifecycleResult(
            app=self._summary(app, lifecycle_row),
            needs_staging=staging_needed and not self.trigger_staging,
            staging_job_id=staging.job_id,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------

    async def delete(self, guid: str, recursive: bool = False) -> None:
        async with UnitOfWork(self.session) as uow:
            app = await self.apps.lock(guid)
            if app is None:
                raise NotFoundError("App", guid)
            await self.access.check(self.actor, app.space_guid, "delete")
            space = await self._require_space(app.space_guid)

            bindings = await ServiceBindingRepository(self.session).list_for_app(guid)
            if bindings and not recursive:
                raise AssociationNotEmptyError("service_bindings", "apps")

            dependents = [
                *bindings,
                *await RouteMappingRepository(self.session).list_for_app(guid),
                *await PackageRepository(self.session).list_for_app(guid),
            ]
            lifecycle_row = await self.lifecycle_rows.get(guid)
            if lifecycle_row is not None:
                dependents.append(lifecycle_row)
            for row in dependents:
                await self.session.delete(row)
            await self.session.flush()
            await self.apps.delete(app)

            events = EventRepository(self.session)

            async def record_delete():
                await events.record_app_delete_request(app, space, self.actor, recursive)

            uow.after_commit(record_delete)

        logger.info("Deleted app %s (recursive=%s)", guid, recursive)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _no_autoflush(self):
        # Pending rows must not be flushed by validation queries; a clashing
        # name would otherwise surface as an integrity error instead of a
        # validation error.
        with self.session.sync_session.no_autoflush:
            yield

    async def _require_space(self, space_guid: str) -> SpaceRow:
        space = await self.spaces.get(space_guid)
        if space is None:
            raise NotFoundError("Space", space_guid)
        return space

    async def _resolve_stack_name(self, stack_guid: str | None, space: SpaceRow) -> str:
        if stack_guid is None:
            return space.default_stack_name or self.config.default_stack
        stack = await self.stacks.get(stack_guid)
        if stack is None:
            raise NotFoundError("Stack", stack_guid)
        return stack.name

    async def _initial_lifecycle(self, change_set: AppChangeSet, space: SpaceRow) -> Lifecycle:
        if change_set.buildpack_type_requested and change_set.docker_type_requested:
            raise LifecycleTypeConflictError()
        if not change_set.docker_type_requested:
            stack = await self._resolve_stack_name(change_set.stack_guid, space)
            return BuildpackLifecycle(buildpack=change_set.buildpack, stack=stack)
        return DockerLifecycle(image=change_set.docker_image)

    def _new_app_row(self, guid: str, space: SpaceRow, change_set: AppChangeSet) -> AppRow:
        provided = change_set.provided
        if provided("enable_ssh"):
            enable_ssh = bool(change_set.enable_ssh)
        else:
            enable_ssh = self.config.allow_app_ssh_access and space.allow_ssh
        return AppRow(
            guid=guid,
            name=change_set.name,
            space_guid=space.guid,
            memory=change_set.memory if provided("memory") else self.config.default_app_memory,
            disk_quota=change_set.disk_quota if provided("disk_quota") else self.config.default_app_disk_quota,
            instances=change_set.instances if provided("instances") else 1,
            state=change_set.state if provided("state") else AppState.STOPPED,
            enable_ssh=enable_ssh,
            diego=change_set.diego if change_set.diego is not None else True,
            ports=change_set.ports if provided("ports") else None,
            docker_credentials=change_set.docker_credentials or {},
            environment_json=change_set.environment_json or {},
            command=change_set.command,
            health_check_type=change_set.health_check_type or "port",
            health_check_timeout=change_set.health_check_timeout,
            package_state=PackageState.PENDING,
            version=uuid.uuid4().hex,
        )

    async def _apply(self, app: AppRow, lifecycle_row: LifecycleDataRow, change_set: AppChangeSet) -> None:
        """Copy present fields onto the locked rows; absent fields stay untouched."""
        provided = change_set.provided

        if provided("space_guid"):
            target = await self._require_space(change_set.space_guid)
            app.space_guid = target.guid
        if provided("environment_json"):
            app.environment_json = change_set.environment_json or {}
        if provided("docker_credentials"):
            app.docker_credentials = change_set.docker_credentials or {}
        for field_name in _DIRECT_FIELDS:
            if provided(field_name):
                setattr(app, field_name, getattr(change_set, field_name))

        if provided("buildpack"):
            lifecycle_row.buildpack = change_set.buildpack
        if provided("stack_guid"):
            space = await self._require_space(app.space_guid)
            stack = await self._resolve_stack_name(change_set.stack_guid, space)
            if stack != lifecycle_row.stack:
                lifecycle_row.stack = stack
                # A droplet built for another stack cannot run; force restaging.
                app.droplet_guid = None

        if provided("docker_image") and not lifecycle_data.images_equal(lifecycle_row.docker_image, change_set.docker_image):
            lifecycle_row.docker_image = change_set.docker_image
            if change_set.docker_image:
                await self.collaborators.package_create.create(self.session, app, change_set.docker_image)

    def _port_warnings(self, app: AppRow, change_set: AppChangeSet) -> list[str]:
        new_diego = change_set.diego if change_set.provided("diego") else None
        ports_given = change_set.provided("ports") and change_set.ports is not None
        if new_diego is not None and app.diego and not new_diego and not ports_given:
            return [PORTS_UNKNOWN_WARNING]
        return []

    @staticmethod
    def _summary(app: AppRow, lifecycle_row: LifecycleDataRow) -> AppSummary:
        lifecycle = lifecycle_data.from_row(lifecycle_row)
        match lifecycle:
            case BuildpackLifecycle(buildpack=buildpack, stack=stack):
                variant = {"buildpack": buildpack, "stack": stack}
            case DockerLifecycle(image=image):
                variant = {"docker_image": image}
        return AppSummary(
            guid=app.guid,
            name=app.name,
            space_guid=app.space_guid,
            memory=app.memory,
            disk_quota=app.disk_quota,
            instances=app.instances,
            state=app.state,
            enable_ssh=app.enable_ssh,
            diego=app.diego,
            ports=app.ports,
            environment_json=app.environment_json or {},
            command=app.command,
            health_check_type=app.health_check_type,
            health_check_timeout=app.health_check_timeout,
            lifecycle_type=lifecycle_data.type_of(lifecycle),
            droplet_guid=app.droplet_guid,
            package_state=app.package_state,
            package_uploaded=bool(app.package_hash),
            version=app.version,
            **variant,
        )
