import secrets
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from justadrop.core.core import Service
from justadrop.core.modules.moderator.models import ModeratorAccount
from justadrop.core.modules.organization.models import Organization
from justadrop.core.modules.session.models import AuthToken, Session, SubjectKind
from justadrop.core.modules.user.models import User
from justadrop.errors import UnauthorizedError
from justadrop.utils import now

logger = structlog.get_logger(__name__)

INVALID_SESSION_MESSAGE = "Invalid or expired session"


class SessionService(Service):
    """Issues, validates and revokes sessions for users, moderators and organizations.

    Validation is lazy: a session whose subject has been banned, deleted,
    deactivated or blacklisted is deleted the next time it is presented.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index([("auth_token", 1)], unique=True)
        await self._collection.create_index([("subject_kind", 1), ("subject_id", 1)])
        # Rows past expires_at are removed by MongoDB; validation never relies on it
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def create_session(self, subject_kind: SubjectKind, subject_id: UUID) -> AuthToken:
        auth_token = AuthToken(secrets.token_urlsafe(32))
        created_at = now()
        session = Session(
            subject_kind=subject_kind,
            subject_id=subject_id,
            auth_token=auth_token,
            created_at=created_at,
            last_accessed_at=created_at,
            expires_at=created_at + timedelta(days=self.core.config.session_ttl_days),
        )
        await self._collection.insert_one(session.to_mongo())
        logger.info("session_created", subject_kind=subject_kind, subject_id=subject_id)
        return auth_token

    async def find_session(self, auth_token: AuthToken, subject_kind: SubjectKind) -> Session | None:
        """Return the live session for a token, deleting it if it has expired."""
        session = Session.from_mongo(await self._collection.find_one({"auth_token": auth_token}))
        if session is None or session.subject_kind != subject_kind:
            return None
        if session.is_expired():
            await self.delete_session(auth_token)
            return None
        return session

    async def get_authenticated_user(self, auth_token: AuthToken) -> User:
        async def resolve(user_id: UUID) -> User | None:
            user = await self.core.services.user.find_user(user_id)
            return user if user is not None and user.in_good_standing else None

        return await self._authenticate(auth_token, SubjectKind.USER, resolve)

    async def get_authenticated_moderator(self, auth_token: AuthToken) -> ModeratorAccount:
        async def resolve(moderator_id: UUID) -> ModeratorAccount | None:
            account = await self.core.services.moderator.get_account(moderator_id)
            return account if account is not None and account.in_good_standing else None

        return await self._authenticate(auth_token, SubjectKind.MODERATOR, resolve)

    async def get_authenticated_organization(self, auth_token: AuthToken) -> Organization:
        async def resolve(organization_id: UUID) -> Organization | None:
            organization = await self.core.services.organization.find_organization(organization_id)
            return organization if organization is not None and organization.can_login else None

        return await self._authenticate(auth_token, SubjectKind.ORGANIZATION, resolve)

    async def delete_session(self, auth_token: AuthToken, subject_kind: SubjectKind | None = None) -> None:
        """Invalidate a session by removing it from the database, optionally only if it is of the given kind."""
        query: dict[str, Any] = {"auth_token": auth_token}
        if subject_kind is not None:
            query["subject_kind"] = subject_kind
        result = await self._collection.delete_one(query)
        if result.deleted_count:
            logger.info("session_deleted")

    async def delete_user_sessions(self, user_id: UUID) -> int:
        return await self._delete_subject_sessions(SubjectKind.USER, user_id)

    async def delete_moderator_sessions(self, moderator_id: UUID) -> int:
        return await self._delete_subject_sessions(SubjectKind.MODERATOR, moderator_id)

    async def delete_organization_sessions(self, organization_id: UUID) -> int:
        return await self._delete_subject_sessions(SubjectKind.ORGANIZATION, organization_id)

    async def _delete_subject_sessions(self, subject_kind: SubjectKind, subject_id: UUID) -> int:
        result = await self._collection.delete_many({"subject_kind": subject_kind, "subject_id": subject_id})
        logger.info("subject_sessions_deleted", subject_kind=subject_kind, subject_id=subject_id, count=result.deleted_count)
        return int(result.deleted_count)

    async def _authenticate[T](
        self, auth_token: AuthToken, subject_kind: SubjectKind, resolve: Callable[[UUID], Awaitable[T | None]]
    ) -> T:
        session = await self.find_session(auth_token, subject_kind)
        if session is None:
            raise UnauthorizedError(INVALID_SESSION_MESSAGE)

        subject = await resolve(session.subject_id)
        if subject is None:
            await self.delete_session(auth_token)
            logger.info("session_revoked", subject_kind=subject_kind, subject_id=session.subject_id)
            raise UnauthorizedError(INVALID_SESSION_MESSAGE)

        # Best-effort touch
        await self._collection.update_one({"_id": session.id}, {"$set": {"last_accessed_at": now()}})
        return subject
