"""String enums shared across the lifecycle core."""

from enum import StrEnum


class AppState(StrEnum):
    STOPPED = "STOPPED"
    STARTED = "STARTED"


class LifecycleType(StrEnum):
    BUILDPACK = "buildpack"
    DOCKER = "docker"


class PackageType(StrEnum):
    BITS = "bits"
    DOCKER = "docker"


class PackageState(StrEnum):
    PENDING = "PENDING"
    STAGED = "STAGED"
    FAILED = "FAILED"


class HealthCheckType(StrEnum):
    PORT = "port"
    PROCESS = "process"
    HTTP = "http"


class JobType(StrEnum):
    STAGE_APP = "stage_app"
    PLACEMENT_START = "placement_start"
    PLACEMENT_STOP = "placement_stop"
    PLACEMENT_UPDATE_URIS = "placement_update_uris"


class JobStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EventType(StrEnum):
    APP_CREATE = "audit.app.create"
    APP_UPDATE = "audit.app.update"
    APP_DELETE_REQUEST = "audit.app.delete-request"
    APP_MAP_ROUTE = "audit.app.map-route"
    APP_START = "audit.app.start"
    APP_STOP = "audit.app.stop"
