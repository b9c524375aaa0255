"""Buildpack / Docker lifecycle variants for an application."""

from dataclasses import dataclass
from urllib.parse import urlparse

from cirrus.db.models.app import LifecycleDataRow
from cirrus.errors.exceptions import LifecycleTypeConflictError
from cirrus.models.app import AppChangeSet
from cirrus.models.enums import LifecycleType

_CUSTOM_BUILDPACK_SCHEMES = {"http", "https", "git", "ssh"}


@dataclass(frozen=True)
class BuildpackLifecycle:
    buildpack: str | None
    stack: str | None

    @property
    def is_custom(self) -> bool:
        """A buildpack given as a URL is fetched from outside the platform."""
        if not self.buildpack:
            return False
        return self.buildpack.startswith("git@") or urlparse(self.buildpack).scheme in _CUSTOM_BUILDPACK_SCHEMES


@dataclass(frozen=True)
class DockerLifecycle:
    image: str | None


Lifecycle = BuildpackLifecycle | DockerLifecycle


def from_row(row: LifecycleDataRow) -> Lifecycle:
    match LifecycleType(row.type):
        case LifecycleType.BUILDPACK:
            return BuildpackLifecycle(buildpack=row.buildpack, stack=row.stack)
        case LifecycleType.DOCKER:
            return DockerLifecycle(image=row.docker_image)


def to_row(app_guid: str, lifecycle: Lifecycle) -> LifecycleDataRow:
    match lifecycle:
        case BuildpackLifecycle(buildpack=buildpack, stack=stack):
            return LifecycleDataRow(
                app_guid=app_guid, type=LifecycleType.BUILDPACK, buildpack=buildpack, stack=stack
            )
        case DockerLifecycle(image=image):
            return LifecycleDataRow(app_guid=app_guid, type=LifecycleType.DOCKER, docker_image=image)


def type_of(lifecycle: Lifecycle) -> LifecycleType:
    match lifecycle:
        case BuildpackLifecycle():
            return LifecycleType.BUILDPACK
        case DockerLifecycle():
            return LifecycleType.DOCKER


def ensure_type_unchanged(lifecycle: Lifecycle, change_set: AppChangeSet) -> None:
    """Reject change-sets carrying fields of the other lifecycle variant."""
    match lifecycle:
        case BuildpackLifecycle():
            conflict = change_set.docker_type_requested
        case DockerLifecycle():
            conflict = change_set.buildpack_type_requested
    if conflict:
        raise LifecycleTypeConflictError()


def images_equal(current: str | None, requested: str | None) -> bool:
    if current is None or requested is None:
        return current is requested
    return current.casefold() == requested.casefold()
