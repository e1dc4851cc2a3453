import secrets

from justadrop.core.core import Service
from justadrop.core.modules.moderator.models import ModeratorAccount
from justadrop.core.modules.organization.models import Organization
from justadrop.core.modules.session.models import AuthToken
from justadrop.core.modules.user.models import User
from justadrop.errors import UnauthorizedError

X_AUTH_ID = "X_AUTH_ID"


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the token belongs to a live end-user session."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def ensure_moderator(self, auth_token: AuthToken) -> ModeratorAccount:
        """Ensure the token belongs to a live session of an active moderator."""
        return await self.core.services.session.get_authenticated_moderator(auth_token)

    async def ensure_organization(self, auth_token: AuthToken) -> Organization:
        """Ensure the token belongs to a live session of a non-blacklisted organization."""
        return await self.core.services.session.get_authenticated_organization(auth_token)

    def x_auth_id(self) -> str | None:
        return self.core.secrets.get(X_AUTH_ID)

    def ensure_x_auth_id(self, presented: str | None) -> None:
        """Check the deployment-wide x-auth-id shared secret.

        Fails closed: with no secret configured every moderator route is refused.
        """
        expected = self.x_auth_id()
        if expected is None:
            raise UnauthorizedError("x-auth-id is not configured")
        if not presented:
            raise UnauthorizedError("x-auth-id header required")
        if not secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
            raise UnauthorizedError("Invalid x-auth-id")
