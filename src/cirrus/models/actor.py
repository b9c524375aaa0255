"""Identity of the user driving a lifecycle operation."""

from dataclasses import dataclass, field

ADMIN_ROLES = frozenset({"admin", "cloud_controller.admin"})


@dataclass(frozen=True)
class Actor:
    user_id: str
    email: str | None = None
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return bool(self.roles & ADMIN_ROLES)

    @classmethod
    def from_user(cls, user: dict) -> "Actor":
        """Build an actor from the user dict attached by the auth middleware."""
        return cls(
            user_id=user.get("sub", ""),
            email=user.get("email") or None,
            roles=frozenset(user.get("roles", [])),
        )
