"""Pydantic models for application change-sets and snapshots."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cirrus.logging_config import redact
from cirrus.models.enums import HealthCheckType, LifecycleType

BUILDPACK_FIELDS = frozenset({"buildpack", "stack_guid"})
DOCKER_FIELDS = frozenset({"docker_image"})


class AppChangeSet(BaseModel):
    """Requested attribute changes for an application.

    Field presence matters: a field left out of the payload is untouched by an
    update, while a field sent as ``null`` is overwritten where nullable.
    Presence is read from ``model_fields_set``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    space_guid: str | None = None
    stack_guid: str | None = None
    buildpack: str | None = None
    docker_image: str | None = None
    docker_credentials: dict[str, Any] | None = None
    environment_json: dict[str, Any] | None = None
    memory: int | None = None
    disk_quota: int | None = None
    instances: int | None = None
    # Left as a free string so that an unknown state surfaces as a
    # validation error kind rather than a request parsing failure.
    state: str | None = None
    enable_ssh: bool | None = None
    diego: bool | None = None
    ports: list[int] | None = None
    command: str | None = None
    health_check_type: HealthCheckType | None = None
    health_check_timeout: int | None = None

    def provided(self, field_name: str) -> bool:
        if field_name == "ports" and self.ports == []:
            return False
        return field_name in self.model_fields_set

    def provided_fields(self) -> set[str]:
        return {name for name in self.model_fields_set if self.provided(name)}

    @property
    def buildpack_type_requested(self) -> bool:
        return bool(self.provided_fields() & BUILDPACK_FIELDS)

    @property
    def docker_type_requested(self) -> bool:
        return bool(self.provided_fields() & DOCKER_FIELDS)

    def redacted(self) -> dict[str, Any]:
        """Return the provided attributes with private values hidden, for logs and audit."""
        return redact(self.model_dump(mode="json", include=self.provided_fields()))


class AppSummary(BaseModel):
    """Snapshot of an application returned to the boundary layer."""

    guid: str
    name: str
    space_guid: str
    memory: int
    disk_quota: int
    instances: int
    state: str
    enable_ssh: bool
    diego: bool
    ports: list[int] | None = None
    environment_json: dict[str, Any] = Field(default_factory=dict)
    command: str | None = None
    health_check_type: str
    health_check_timeout: int | None = None
    lifecycle_type: LifecycleType
    buildpack: str | None = None
    stack: str | None = None
    docker_image: str | None = None
    droplet_guid: str | None = None
    package_state: str
    package_uploaded: bool
    version: str


class LifecycleResult(BaseModel):
    """Outcome of a create/update handed back to the boundary layer."""

    app: AppSummary
    needs_staging: bool = False
    staging_job_id: str | None = None
    warnings: list[str] = Field(default_factory=list)
