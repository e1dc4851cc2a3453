from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from justadrop.config import Config
from justadrop.core.core import Core
from justadrop.core.modules.moderator.models import ModeratorAccount, ModeratorView
from justadrop.core.modules.organization.models import ApprovalStatus, OrganizationView
from justadrop.core.modules.session.models import AuthToken, SubjectKind
from justadrop.core.modules.user.models import UserView
from justadrop.core.secrets import SecretProvider
from justadrop.errors import UnauthorizedError, ValidationError
from justadrop.utils import now

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, validates credentials before delegating to Core."""

    def __init__(
        self,
        config: Config,
        database: AsyncDatabase[dict[str, Any]] | None = None,
        secrets: SecretProvider | None = None,
    ) -> None:
        self._core = Core(config, database=database, secrets=secrets)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Health ===
    async def get_readiness(self) -> dict[str, Any]:
        """Report whether the database is reachable."""
        try:
            await self._core.ping_database()
        except Exception as e:
            logger.warning("readiness_check_failed", error=str(e))
            return {"status": "not_ready", "timestamp": now().isoformat(), "checks": {"database": "unhealthy"}, "error": str(e)}
        return {"status": "ready", "timestamp": now().isoformat(), "checks": {"database": "healthy"}}

    # === End-user auth ===
    async def send_otp(self, email: str) -> None:
        """Send a sign-in code to any email address (sign-up and sign-in are one flow)."""
        await self._core.services.auth.send_otp(email)

    async def verify_otp(self, email: str, code: str) -> tuple[AuthToken, UserView, bool]:
        """Verify a sign-in code; returns (token, user, is_new_user)."""
        login = await self._core.services.auth.verify_otp_and_login(email, code)
        return login.token, UserView.from_domain(login.user), login.is_new_user

    async def logout(self, auth_token: AuthToken) -> None:
        """Delete the presented user session (no-op if it does not exist)."""
        await self._core.services.auth.logout(auth_token)

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        """Get current authenticated user profile."""
        user = await self._core.services.access.ensure_authenticated(auth_token)
        return UserView.from_domain(user)

    # === Moderator auth ===
    def get_x_auth_id(self) -> str | None:
        """Deployment shared secret forwarded by the dashboard proxy, if configured."""
        return self._core.services.access.x_auth_id()

    async def send_moderator_otp(self, email: str) -> None:
        await self._core.services.moderator_auth.send_otp(email)

    async def verify_moderator_otp(self, email: str, code: str) -> tuple[AuthToken, ModeratorView]:
        login = await self._core.services.moderator_auth.verify_otp_and_login(email, code)
        return login.token, ModeratorView.from_domain(login.account)

    async def moderator_logout(self, auth_token: AuthToken | None, x_auth_id: str | None) -> None:
        self._core.services.access.ensure_x_auth_id(x_auth_id)
        if auth_token is not None:
            await self._core.services.moderator_auth.logout(auth_token)

    async def get_current_moderator(self, auth_token: AuthToken, x_auth_id: str | None) -> ModeratorView:
        self._core.services.access.ensure_x_auth_id(x_auth_id)
        account = await self._core.services.moderator_auth.get_current_moderator(auth_token)
        if account is None:
            raise UnauthorizedError("Invalid or expired session")
        return ModeratorView.from_domain(account)

    # === Moderator administration ===
    async def seed_moderator(self, x_auth_id: str | None, email: str) -> ModeratorView:
        """Bootstrap the first moderator (requires the configured x-auth-id)."""
        self._core.services.access.ensure_x_auth_id(x_auth_id)
        account = await self._core.services.moderator.seed_moderator(email)
        return ModeratorView.from_domain(account)

    async def set_moderator_active(
        self, auth_token: AuthToken, x_auth_id: str | None, moderator_id: UUID, is_active: bool
    ) -> ModeratorView:
        """Activate or deactivate another moderator (moderators only)."""
        current = await self._ensure_moderator(auth_token, x_auth_id)
        if current.moderator.id == moderator_id and not is_active:
            raise ValidationError("Cannot deactivate yourself")
        account = await self._core.services.moderator.set_active(moderator_id, is_active)
        return ModeratorView.from_domain(account)

    async def ban_user(self, auth_token: AuthToken, x_auth_id: str | None, user_id: UUID) -> UserView:
        """Ban a user and revoke their sessions (moderators only)."""
        current = await self._ensure_moderator(auth_token, x_auth_id)
        if current.user.id == user_id:
            raise ValidationError("Cannot ban yourself")
        return UserView.from_domain(await self._core.services.user.ban_user(user_id))

    async def delete_user(self, auth_token: AuthToken, x_auth_id: str | None, user_id: UUID) -> None:
        """Soft-delete a user and revoke their sessions (moderators only)."""
        current = await self._ensure_moderator(auth_token, x_auth_id)
        if current.user.id == user_id:
            raise ValidationError("Cannot delete yourself")
        await self._core.services.user.delete_user(user_id)

    async def list_organizations(
        self, auth_token: AuthToken, x_auth_id: str | None, status: ApprovalStatus | None = None
    ) -> list[OrganizationView]:
        await self._ensure_moderator(auth_token, x_auth_id)
        organizations = await self._core.services.organization.list_organizations(status)
        return [OrganizationView.from_domain(organization) for organization in organizations]

    async def approve_organization(
        self, auth_token: AuthToken, x_auth_id: str | None, organization_id: UUID, notes: str | None
    ) -> OrganizationView:
        current = await self._ensure_moderator(auth_token, x_auth_id)
        organization = await self._core.services.organization.approve(organization_id, current.moderator.id, notes)
        return OrganizationView.from_domain(organization)

    async def reject_organization(
        self, auth_token: AuthToken, x_auth_id: str | None, organization_id: UUID, notes: str
    ) -> OrganizationView:
        current = await self._ensure_moderator(auth_token, x_auth_id)
        organization = await self._core.services.organization.reject(organization_id, current.moderator.id, notes)
        return OrganizationView.from_domain(organization)

    async def blacklist_organization(
        self, auth_token: AuthToken, x_auth_id: str | None, organization_id: UUID, reason: str
    ) -> OrganizationView:
        current = await self._ensure_moderator(auth_token, x_auth_id)
        organization = await self._core.services.organization.blacklist(organization_id, current.moderator.id, reason)
        return OrganizationView.from_domain(organization)

    # === Organizations ===
    async def register_organization(self, name: str, email: str, password: str) -> OrganizationView:
        organization = await self._core.services.organization.register(name, email, password)
        return OrganizationView.from_domain(organization)

    async def login_organization(self, email: str, password: str) -> tuple[AuthToken, OrganizationView]:
        token, organization = await self._core.services.organization.login(email, password)
        return token, OrganizationView.from_domain(organization)

    async def organization_logout(self, auth_token: AuthToken) -> None:
        await self._core.services.session.delete_session(auth_token, SubjectKind.ORGANIZATION)

    async def get_current_organization(self, auth_token: AuthToken) -> OrganizationView:
        organization = await self._core.services.access.ensure_organization(auth_token)
        return OrganizationView.from_domain(organization)

    # === Private helpers ===
    async def _ensure_moderator(self, auth_token: AuthToken, x_auth_id: str | None) -> ModeratorAccount:
        self._core.services.access.ensure_x_auth_id(x_auth_id)
        return await self._core.services.access.ensure_moderator(auth_token)
