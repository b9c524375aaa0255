"""Tests for application creation."""

import pytest

from cirrus.config import Settings
from cirrus.db.models.app import AppRow, LifecycleDataRow, PackageRow
from cirrus.db.models.event import EventRow
from cirrus.db.models.org import SpaceDeveloperRow, SpaceQuotaDefinitionRow, SpaceRow
from cirrus.errors.exceptions import (
    AuthorizationError,
    CustomBuildpackDisabledError,
    LifecycleTypeConflictError,
    MemoryPolicyViolation,
    NameConflictError,
    NotFoundError,
    PackageNotUploadedError,
    SSHAccessDeniedError,
    ValidationError,
)
from cirrus.models.app import AppChangeSet
from cirrus.models.enums import AppState, EventType, LifecycleType
from cirrus.services.lifecycle.state_machine import AppLifecycle


def _change_set(**fields) -> AppChangeSet:
    return AppChangeSet.model_validate(fields)


@pytest.mark.asyncio
async def test_create_defaults_to_buildpack_with_space_default_stack(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer)
    result = await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid))

    assert result.app.name == "foo"
    assert result.app.lifecycle_type == LifecycleType.BUILDPACK
    assert result.app.stack == "cflinuxfs3"
    assert result.app.buildpack is None
    assert result.app.state == AppState.STOPPED
    assert result.app.instances == 1
    assert result.staging_job_id is None

    [row] = await fetch(LifecycleDataRow, app_guid=result.app.guid)
    assert row.type == LifecycleType.BUILDPACK
    assert row.stack == "cflinuxfs3"


@pytest.mark.asyncio
async def test_create_falls_back_to_platform_default_stack(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.admin, config=Settings(default_stack="cflinuxfs4"))
    result = await lifecycle.create(_change_set(name="foo", space_guid=platform.other_space_guid))
    assert result.app.stack == "cflinuxfs4"


@pytest.mark.asyncio
async def test_create_with_explicit_stack(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer)
    result = await lifecycle.create(
        _change_set(name="foo", space_guid=platform.space_guid, stack_guid="stack-fs4", buildpack="ruby_buildpack")
    )
    assert result.app.stack == "cflinuxfs4"
    assert result.app.buildpack == "ruby_buildpack"


@pytest.mark.asyncio
async def test_create_with_unknown_stack_fails(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(NotFoundError):
        await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid, stack_guid="nope"))
    assert await fetch(AppRow, name="foo") == []


@pytest.mark.asyncio
async def test_create_docker_app_issues_package(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer)
    result = await lifecycle.create(
        _change_set(name="web", space_guid=platform.space_guid, docker_image="nginx:latest")
    )

    assert result.app.lifecycle_type == LifecycleType.DOCKER
    assert result.app.docker_image == "nginx:latest"
    assert result.app.package_uploaded is True
    [package] = await fetch(PackageRow, app_guid=result.app.guid)
    assert package.type == "docker"
    assert package.docker_image == "nginx:latest"


@pytest.mark.asyncio
async def test_create_started_docker_app_queues_staging(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer)
    result = await lifecycle.create(
        _change_set(name="web", space_guid=platform.space_guid, docker_image="nginx", state="STARTED")
    )
    assert result.app.state == AppState.STARTED
    assert result.staging_job_id is not None


@pytest.mark.asyncio
async def test_create_with_both_lifecycle_variants_is_rejected(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(LifecycleTypeConflictError):
        await lifecycle.create(
            _change_set(name="foo", space_guid=platform.space_guid, buildpack="go_buildpack", docker_image="nginx")
        )


@pytest.mark.asyncio
async def test_create_duplicate_name_in_space(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer)
    await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid))
    with pytest.raises(NameConflictError):
        await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid))


@pytest.mark.asyncio
async def test_create_requires_space(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(ValidationError):
        await lifecycle.create(_change_set(name="foo"))
    with pytest.raises(NotFoundError):
        await lifecycle.create(_change_set(name="foo", space_guid="missing"))


@pytest.mark.asyncio
async def test_create_custom_buildpack_when_disabled(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer, config=Settings(disable_custom_buildpacks=True))
    with pytest.raises(CustomBuildpackDisabledError):
        await lifecycle.create(
            _change_set(
                name="foo",
                space_guid=platform.space_guid,
                buildpack="https://github.com/example/custom-buildpack",
            )
        )
    assert await fetch(AppRow, name="foo") == []

    result = await lifecycle.create(
        _change_set(name="foo", space_guid=platform.space_guid, buildpack="java_buildpack")
    )
    assert result.app.buildpack == "java_buildpack"


@pytest.mark.asyncio
async def test_create_started_without_package_fails(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(PackageNotUploadedError):
        await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid, state="STARTED"))
    assert await fetch(AppRow, name="foo") == []


@pytest.mark.asyncio
async def test_create_ssh_denied_in_space_without_ssh(db_session, platform):
    # developer in the no-ssh space so only the ssh policy can refuse
    db_session.add(SpaceDeveloperRow(space_guid=platform.other_space_guid, user_id="dev-user"))
    await db_session.commit()

    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(SSHAccessDeniedError) as exc_info:
        await lifecycle.create(_change_set(name="foo", space_guid=platform.other_space_guid, enable_ssh=True))
    assert isinstance(exc_info.value, AuthorizationError)

    admin_result = await AppLifecycle(db_session, platform.admin).create(
        _change_set(name="foo", space_guid=platform.other_space_guid, enable_ssh=True)
    )
    assert admin_result.app.enable_ssh is True


@pytest.mark.asyncio
async def test_create_by_non_developer_rolls_back(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.outsider)
    with pytest.raises(AuthorizationError):
        await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid))
    assert await fetch(AppRow, name="foo") == []
    assert await fetch(LifecycleDataRow) == []


@pytest.mark.asyncio
async def test_create_records_audit_event_with_redacted_credentials(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer)
    result = await lifecycle.create(
        _change_set(
            name="web",
            space_guid=platform.space_guid,
            docker_image="registry.example.com/web",
            docker_credentials={"username": "u", "password": "secret"},
        )
    )
    [event] = await fetch(EventRow, actee=result.app.guid, type=EventType.APP_CREATE)
    assert event.actor == "dev-user"
    assert event.metadata_["request"]["docker_credentials"] == "[PRIVATE DATA HIDDEN]"
    assert event.metadata_["request"]["name"] == "web"


@pytest.mark.asyncio
async def test_space_quota_error_wins_over_invalid_memory(db_session, platform):
    db_session.add(
        SpaceQuotaDefinitionRow(guid="sq-small", name="small", organization_guid=platform.org_guid, memory_limit=512)
    )
    await db_session.flush()
    space = await db_session.get(SpaceRow, platform.space_guid)
    space.space_quota_definition_guid = "sq-small"
    # An existing started app already uses more than the space allows.
    db_session.add(
        AppRow(
            guid="existing",
            name="existing",
            space_guid=platform.space_guid,
            memory=1024,
            disk_quota=1024,
            instances=1,
            state="STARTED",
            package_hash="abc",
            version="v1",
        )
    )
    await db_session.commit()

    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(MemoryPolicyViolation) as exc_info:
        await lifecycle.create(
            # docker apps carry a package, so only the memory rules can fail here
            _change_set(name="foo", space_guid=platform.space_guid, docker_image="nginx", memory=0, state="STARTED")
        )
    assert exc_info.value.kind == MemoryPolicyViolation.SPACE_QUOTA_EXCEEDED
    assert exc_info.value.code == "SPACE_QUOTA_MEMORY_LIMIT_EXCEEDED"


@pytest.mark.asyncio
async def test_zero_memory_without_quota_pressure(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer)
    with pytest.raises(MemoryPolicyViolation) as exc_info:
        await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid, memory=0))
    assert exc_info.value.kind == MemoryPolicyViolation.ZERO_OR_LESS


@pytest.mark.asyncio
async def test_missing_package_reported_before_name_conflict(db_session, platform, fetch):
    lifecycle = AppLifecycle(db_session, platform.developer)
    await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid))

    with pytest.raises(PackageNotUploadedError):
        await lifecycle.create(_change_set(name="foo", space_guid=platform.space_guid, state="STARTED"))
    assert len(await fetch(AppRow, name="foo")) == 1


@pytest.mark.asyncio
async def test_custom_buildpack_reported_before_invalid_memory(db_session, platform):
    lifecycle = AppLifecycle(db_session, platform.developer, config=Settings(disable_custom_buildpacks=True))
    with pytest.raises(CustomBuildpackDisabledError):
        await lifecycle.create(
            _change_set(
                name="foo",
                space_guid=platform.space_guid,
                buildpack="git@github.com:example/buildpack.git",
                memory=0,
            )
        )
