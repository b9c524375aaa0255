"""SSH enablement policy."""

from cirrus.db.models.org import SpaceRow
from cirrus.errors.exceptions import SSHAccessDeniedError
from cirrus.models.actor import Actor


class SSHAccessPolicy:
    """Decides whether an app may have SSH enabled in a given space.

    Enabling SSH requires the platform-wide flag and either a space that
    allows SSH or an admin actor. Requests that leave SSH off, or do not
    mention it, are always permitted.
    """

    def __init__(self, allow_app_ssh_access: bool):
        self.allow_app_ssh_access = allow_app_ssh_access

    def permit(self, requested_enable: bool | None, space: SpaceRow, actor: Actor) -> bool:
        if not requested_enable:
            return True
        return self.allow_app_ssh_access and (space.allow_ssh or actor.is_admin)

    def enforce(self, requested_enable: bool | None, space: SpaceRow, actor: Actor) -> None:
        if not self.permit(requested_enable, space, actor):
            raise SSHAccessDeniedError()
