from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from justadrop.core.core import Service
from justadrop.core.modules.organization.models import ApprovalStatus, Organization
from justadrop.core.modules.organization.validators import validate_organization_name, validate_password
from justadrop.core.modules.session.models import AuthToken, SubjectKind
from justadrop.core.modules.user.validators import validate_email
from justadrop.errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from justadrop.utils import normalize_email, now

logger = structlog.get_logger(__name__)

# Compared against when the email is unknown so both failure paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"justadrop-dummy-password", bcrypt.gensalt()).decode("utf-8")


class OrganizationService(Service):
    """Organization registration, password login, and moderator review."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("organizations")

    async def on_start(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index([("approval_status", 1)])

    async def find_organization(self, organization_id: UUID) -> Organization | None:
        return Organization.from_mongo(await self._collection.find_one({"_id": organization_id}))

    async def get_organization(self, organization_id: UUID) -> Organization:
        organization = await self.find_organization(organization_id)
        if organization is None:
            raise NotFoundError(f"Organization '{organization_id}' not found")
        return organization

    async def find_by_email(self, email: str) -> Organization | None:
        return Organization.from_mongo(await self._collection.find_one({"email": normalize_email(email)}))

    async def list_organizations(self, status: ApprovalStatus | None = None) -> list[Organization]:
        query: dict[str, Any] = {} if status is None else {"approval_status": status}
        return await Organization.list_cursor(self._collection.find(query, sort=[("created_at", 1)]))

    async def register(self, name: str, email: str, password: str) -> Organization:
        """Register a new organization in PENDING state."""
        name = validate_organization_name(name)
        email = validate_email(email)
        validate_password(password)
        if await self.find_by_email(email) is not None:
            raise ValidationError(f"Organization with email '{email}' already exists")

        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        organization = Organization(name=name, email=email, password_hash=password_hash)
        try:
            await self._collection.insert_one(organization.to_mongo())
        except DuplicateKeyError as e:
            raise ValidationError(f"Organization with email '{email}' already exists") from e
        logger.info("organization_registered", organization_id=organization.id)

        await self.core.services.email.send_organization_registered_email(email, name)
        return organization

    async def authenticate(self, email: str, password: str) -> Organization:
        """Check credentials; only a blacklisted organization is refused."""
        organization = await self.find_by_email(email)
        password_hash = organization.password_hash if organization is not None else _DUMMY_HASH
        password_ok = bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        if organization is None or not password_ok:
            raise UnauthorizedError("Invalid email or password")

        if not organization.can_login:
            raise ForbiddenError("Organization is blacklisted")
        return organization

    async def login(self, email: str, password: str) -> tuple[AuthToken, Organization]:
        organization = await self.authenticate(email, password)
        token = await self.core.services.session.create_session(SubjectKind.ORGANIZATION, organization.id)
        return token, organization

    async def approve(self, organization_id: UUID, moderator_id: UUID, notes: str | None = None) -> Organization:
        organization = await self._set_status(organization_id, ApprovalStatus.APPROVED, moderator_id, notes)
        await self.core.services.email.send_organization_approved_email(organization.email, organization.name, notes)
        return organization

    async def reject(self, organization_id: UUID, moderator_id: UUID, notes: str) -> Organization:
        organization = await self._set_status(organization_id, ApprovalStatus.REJECTED, moderator_id, notes)
        await self.core.services.email.send_organization_rejected_email(organization.email, organization.name, notes)
        return organization

    async def blacklist(self, organization_id: UUID, moderator_id: UUID, reason: str) -> Organization:
        """Blacklist an organization and end every session it holds."""
        organization = await self._set_status(organization_id, ApprovalStatus.BLACKLISTED, moderator_id, reason)
        await self.core.services.session.delete_organization_sessions(organization_id)
        return organization

    async def _set_status(
        self, organization_id: UUID, status: ApprovalStatus, moderator_id: UUID, notes: str | None
    ) -> Organization:
        await self.get_organization(organization_id)

        timestamp = now()
        update: dict[str, Any] = {
            "approval_status": status,
            "approval_notes": notes,
            "approved_by": moderator_id,
            "updated_at": timestamp,
        }
        if status == ApprovalStatus.APPROVED:
            update["approved_at"] = timestamp
        await self._collection.update_one({"_id": organization_id}, {"$set": update})
        logger.info("organization_status_changed", organization_id=organization_id, status=status, moderator_id=moderator_id)
        return await self.get_organization(organization_id)
