"""Custom exception classes for the Cirrus control plane."""


class CirrusError(Exception):
    """Base exception for Cirrus."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(CirrusError):
    """Schema or request validation failure."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(CirrusError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(CirrusError):
    """Authentication required or token invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class AuthorizationError(CirrusError):
    """Insufficient permissions."""

    def __init__(self, message: str = "You are not authorized to perform the requested action", code: str = "NOT_AUTHORIZED"):
        super().__init__(code, message, status_code=403)


class SSHAccessDeniedError(AuthorizationError):
    """SSH enablement requested where platform or space policy forbids it."""

    def __init__(self):
        super().__init__("enable_ssh must be false due to global allow_ssh setting", code="SSH_DISABLED")


class AssociationNotEmptyError(CirrusError):
    """Delete refused while dependent associations remain."""

    def __init__(self, association: str, table: str):
        super().__init__(
            "ASSOCIATION_NOT_EMPTY",
            f"Please delete the {association} associations for your {table}.",
            status_code=400,
        )


# ---------------------------------------------------------------------------
# Application validation kinds
# ---------------------------------------------------------------------------


class AppValidationError(CirrusError):
    """An application change violated a model or policy rule."""

    def __init__(self, code: str, message: str, details=None):
        super().__init__(code, message, details, status_code=400)


class AppInvalidError(AppValidationError):
    def __init__(self, message: str, details=None):
        super().__init__("APP_INVALID", f"The app is invalid: {message}", details)


class NameConflictError(AppValidationError):
    def __init__(self, name: str | None):
        super().__init__("APP_NAME_TAKEN", f"The app name is taken: {name}")


class MemoryPolicyViolation(AppValidationError):
    """Memory rule failure; ``kind`` names the violated rule."""

    ZERO_OR_LESS = "zero_or_less"
    SPACE_QUOTA_EXCEEDED = "space_quota_exceeded"
    SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED = "space_instance_memory_limit_exceeded"
    ORG_QUOTA_EXCEEDED = "quota_exceeded"
    INSTANCE_MEMORY_LIMIT_EXCEEDED = "instance_memory_limit_exceeded"

    _MESSAGES = {
        ZERO_OR_LESS: ("APP_MEMORY_INVALID", "You have specified an invalid amount of memory for your application."),
        SPACE_QUOTA_EXCEEDED: (
            "SPACE_QUOTA_MEMORY_LIMIT_EXCEEDED",
            "You have exceeded your space's memory limit.",
        ),
        SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED: (
            "SPACE_QUOTA_INSTANCE_MEMORY_LIMIT_EXCEEDED",
            "You have exceeded the instance memory limit for your space's quota.",
        ),
        ORG_QUOTA_EXCEEDED: (
            "APP_MEMORY_QUOTA_EXCEEDED",
            "You have exceeded your organization's memory limit.",
        ),
        INSTANCE_MEMORY_LIMIT_EXCEEDED: (
            "QUOTA_INSTANCE_MEMORY_LIMIT_EXCEEDED",
            "You have exceeded the instance memory limit for your organization's quota.",
        ),
    }

    def __init__(self, kind: str):
        self.kind = kind
        code, message = self._MESSAGES[kind]
        super().__init__(code, message)


class InstanceCountInvalidError(AppValidationError):
    def __init__(self):
        super().__init__("APP_INSTANCES_INVALID", "Number of instances less than 0")


class InstanceQuotaExceededError(AppValidationError):
    """App instance limit exceeded; ``scope`` is ``space`` or ``org``."""

    def __init__(self, scope: str):
        self.scope = scope
        if scope == "space":
            super().__init__(
                "SPACE_QUOTA_INSTANCE_LIMIT_EXCEEDED",
                "You have exceeded the instance limit for your space's quota.",
            )
        else:
            super().__init__(
                "QUOTA_INSTANCE_LIMIT_EXCEEDED",
                "You have exceeded the instance limit for your organization's quota.",
            )


class InvalidStateError(AppValidationError):
    def __init__(self):
        super().__init__("APP_STATE_INVALID", "Invalid app state provided")


class DockerDisabledError(AppValidationError):
    def __init__(self):
        super().__init__("DOCKER_DISABLED", "Docker support has not been enabled")


class PortMappingBackendConflictError(AppValidationError):
    def __init__(self):
        super().__init__(
            "MULTIPLE_APP_PORTS_MAPPED_DIEGO_TO_DEA",
            "The app has routes mapped to multiple ports. Multiple ports are only supported on the diego backend.",
        )


class LifecycleTypeConflictError(AppValidationError):
    def __init__(self):
        super().__init__("LIFECYCLE_TYPE_CONFLICT", "Lifecycle type cannot be changed")


class CustomBuildpackDisabledError(AppValidationError):
    def __init__(self):
        super().__init__("CUSTOM_BUILDPACKS_DISABLED", "custom buildpacks are disabled")


class PackageNotUploadedError(AppValidationError):
    def __init__(self):
        super().__init__("APP_PACKAGE_INVALID", "bits have not been uploaded")


# ---------------------------------------------------------------------------
# Route mapping kinds
# ---------------------------------------------------------------------------


class RouteNotFoundError(NotFoundError):
    def __init__(self, route_guid: str):
        super().__init__("Route", route_guid)
        self.code = "ROUTE_NOT_FOUND"


class RoutingFeatureDisabledError(CirrusError):
    def __init__(self):
        super().__init__("TCP_ROUTING_DISABLED", "TCP routing is disabled", status_code=403)


class InvalidRouteRelationError(CirrusError):
    def __init__(self, message: str):
        super().__init__("INVALID_RELATION", f"The requested route relation is invalid: {message}", status_code=400)


class UnsupportedRouteRelationError(InvalidRouteRelationError):
    def __init__(self, route_guid: str):
        super().__init__(f"{route_guid} - Route services are only supported for apps on Diego")


class SpaceMismatchError(InvalidRouteRelationError):
    def __init__(self, route_guid: str):
        super().__init__(route_guid)
