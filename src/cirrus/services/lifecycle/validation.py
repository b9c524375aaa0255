"""Application validation and translation into error kinds."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.config import Settings
from cirrus.db.models.app import AppRow
from cirrus.db.models.org import SpaceRow
from cirrus.errors.exceptions import (
    AppInvalidError,
    AppValidationError,
    CustomBuildpackDisabledError,
    DockerDisabledError,
    InstanceCountInvalidError,
    InstanceQuotaExceededError,
    InvalidStateError,
    MemoryPolicyViolation,
    NameConflictError,
    PackageNotUploadedError,
    PortMappingBackendConflictError,
)
from cirrus.models.enums import AppState
from cirrus.repositories.app_repo import AppRepository
from cirrus.repositories.route_repo import RouteMappingRepository
from cirrus.repositories.space_repo import SpaceRepository
from cirrus.services.lifecycle.lifecycle_data import BuildpackLifecycle, DockerLifecycle, Lifecycle
from cirrus.services.policy.quota import QuotaLimits, Usage, instance_limit_violations, memory_violations

logger = logging.getLogger(__name__)

NAME_IN_SPACE = "space_guid_and_name"

# Most specific memory rule first.
_MEMORY_PRECEDENCE = (
    MemoryPolicyViolation.SPACE_QUOTA_EXCEEDED,
    MemoryPolicyViolation.SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED,
    MemoryPolicyViolation.ORG_QUOTA_EXCEEDED,
    MemoryPolicyViolation.ZERO_OR_LESS,
    MemoryPolicyViolation.INSTANCE_MEMORY_LIMIT_EXCEEDED,
)

_QUOTA_FIELDS = {"memory", "instances", "state", "space_guid"}


class ValidationErrors:
    """Field to rule-kind collection, filled by every check before translation."""

    def __init__(self):
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, kind: str) -> None:
        self._errors.setdefault(field, []).append(kind)

    def on(self, field: str) -> list[str]:
        return self._errors.get(field, [])

    def full_messages(self) -> list[str]:
        return [f"{field} {kind}" for field, kinds in self._errors.items() for kind in kinds]

    def __bool__(self) -> bool:
        return bool(self._errors)


def translate_validation_errors(errors: ValidationErrors, name: str | None) -> AppValidationError:
    """Pick the single error kind surfaced for a failed validation.

    Precedence: name/space > memory > instance count > instance quota >
    state > docker-disabled > backend/port conflict > generic.
    """
    if errors.on(NAME_IN_SPACE):
        return NameConflictError(name)
    if memory_kinds := errors.on("memory"):
        for kind in _MEMORY_PRECEDENCE:
            if kind in memory_kinds:
                return MemoryPolicyViolation(kind)
    if errors.on("instances"):
        return InstanceCountInvalidError()
    if instance_limit := errors.on("app_instance_limit"):
        if "space_app_instance_limit_exceeded" in instance_limit:
            return InstanceQuotaExceededError("space")
        return InstanceQuotaExceededError("org")
    if errors.on("state"):
        return InvalidStateError()
    if "docker_disabled" in errors.on("docker"):
        return DockerDisabledError()
    if errors.on("diego_to_dea"):
        return PortMappingBackendConflictError()
    return AppInvalidError(", ".join(errors.full_messages()), details=errors.full_messages())


class AppValidator:
    """Model-level checks run against the post-mutation state of an app."""

    def __init__(self, session: AsyncSession, config: Settings):
        self.config = config
        self.apps = AppRepository(session)
        self.spaces = SpaceRepository(session)
        self.route_mappings = RouteMappingRepository(session)

    async def collect(
        self,
        app: AppRow,
        lifecycle: Lifecycle,
        changed: set[str],
        is_new: bool,
        was_diego: bool | None = None,
    ) -> ValidationErrors:
        errors = ValidationErrors()
        exclude = None if is_new else app.guid

        if not app.name:
            errors.add("name", "presence")
        elif (is_new or {"name", "space_guid"} & changed) and await self.apps.name_taken(
            app.space_guid, app.name, exclude_guid=exclude
        ):
            errors.add(NAME_IN_SPACE, "unique")

        if app.memory is None or app.memory <= 0:
            errors.add("memory", MemoryPolicyViolation.ZERO_OR_LESS)
        if app.instances is None or app.instances < 0:
            errors.add("instances", "less_than_zero")
        if app.disk_quota is None or app.disk_quota <= 0:
            errors.add("disk_quota", "zero_or_less")

        if app.state not in (AppState.STARTED, AppState.STOPPED):
            errors.add("state", "invalid")
        elif app.state == AppState.STARTED and (is_new or _QUOTA_FIELDS & changed):
            await self._check_quotas(app, exclude, errors)

        if isinstance(lifecycle, DockerLifecycle) and not self.config.docker_enabled:
            if app.state == AppState.STARTED and (is_new or "state" in changed):
                errors.add("docker", "docker_disabled")

        if was_diego and app.diego is False and "diego" in changed:
            mappings = await self.route_mappings.list_for_app(app.guid)
            ports = {m.app_port for m in mappings if m.app_port is not None}
            if len(ports) > 1:
                errors.add("diego_to_dea", "multiple_app_ports")

        return errors

    async def validate(self, app: AppRow, lifecycle: Lifecycle, changed: set[str], is_new: bool, **kwargs) -> None:
        errors = await self.collect(app, lifecycle, changed, is_new, **kwargs)
        if errors:
            logger.info("App %s failed validation: %s", app.guid, errors.full_messages())
            raise translate_validation_errors(errors, app.name)

    async def _check_quotas(self, app: AppRow, exclude: str | None, errors: ValidationErrors) -> None:
        if app.memory is None or app.instances is None or app.instances < 0:
            return
        space = await self.spaces.get(app.space_guid)
        if space is None:
            return
        space_limits, org_limits = await self._limits(space)
        space_usage = Usage(*await self.apps.started_usage_in_space(space.guid, exclude_guid=exclude))
        org_usage = Usage(*await self.apps.started_usage_in_org(space.organization_guid, exclude_guid=exclude))

        for kind in memory_violations(app.memory, app.instances, space_limits, space_usage, org_limits, org_usage):
            errors.add("memory", kind)
        for kind in instance_limit_violations(app.instances, space_limits, space_usage, org_limits, org_usage):
            errors.add("app_instance_limit", kind)

    async def _limits(self, space: SpaceRow) -> tuple[QuotaLimits | None, QuotaLimits | None]:
        space_quota = await self.spaces.get_space_quota(space)
        org = await self.spaces.get_organization(space)
        org_quota = await self.spaces.get_org_quota(org) if org else None
        return _limits_of(space_quota), _limits_of(org_quota)


def _limits_of(quota) -> QuotaLimits | None:
    if quota is None:
        return None
    return QuotaLimits(
        memory_limit=quota.memory_limit,
        instance_memory_limit=quota.instance_memory_limit,
        app_instance_limit=quota.app_instance_limit,
    )


def validate_buildpack(lifecycle: Lifecycle, config: Settings) -> None:
    match lifecycle:
        case BuildpackLifecycle() if lifecycle.is_custom and config.disable_custom_buildpacks:
            raise CustomBuildpackDisabledError()
        case BuildpackLifecycle() | DockerLifecycle():
            return


def needs_package_in_current_state(app: AppRow) -> bool:
    return app.state == AppState.STARTED


def validate_package_is_uploaded(app: AppRow) -> None:
    if needs_package_in_current_state(app) and not app.package_hash:
        raise PackageNotUploadedError()
