from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from justadrop.core.core import Service
from justadrop.core.modules.user.models import User
from justadrop.errors import NotFoundError, ValidationError
from justadrop.utils import normalize_email, now

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages end-user accounts.

    Users are read from the database on every lookup so that a ban or delete on
    one replica is seen by session validation everywhere.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        await self._collection.create_index([("email", 1)], unique=True)
        await self._collection.create_index([("deleted_at", 1)])

    async def find_user(self, user_id: UUID) -> User | None:
        return User.from_mongo(await self._collection.find_one({"_id": user_id}))

    async def get_user(self, user_id: UUID) -> User:
        user = await self.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    async def find_by_email(self, email: str) -> User | None:
        return User.from_mongo(await self._collection.find_one({"email": normalize_email(email)}))

    async def create_user(self, email: str, email_verified: bool = False, name: str | None = None) -> User:
        email = normalize_email(email)
        if await self.find_by_email(email) is not None:
            raise ValidationError(f"User '{email}' already exists")

        user = User(email=email, email_verified=email_verified, name=name)
        try:
            await self._collection.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            # Lost a race with a concurrent sign-up for the same email
            raise ValidationError(f"User '{email}' already exists") from e
        logger.info("user_created", user_id=user.id)
        return user

    async def mark_email_verified(self, user_id: UUID) -> User:
        await self._collection.update_one({"_id": user_id}, {"$set": {"email_verified": True, "updated_at": now()}})
        return await self.get_user(user_id)

    async def ban_user(self, user_id: UUID) -> User:
        """Ban a user and revoke every session tied to the account."""
        await self.get_user(user_id)
        await self._collection.update_one({"_id": user_id}, {"$set": {"is_banned": True, "updated_at": now()}})
        await self._revoke_all_sessions(user_id)
        logger.info("user_banned", user_id=user_id)
        return await self.get_user(user_id)

    async def delete_user(self, user_id: UUID) -> None:
        """Soft-delete a user and revoke every session tied to the account."""
        user = await self.get_user(user_id)
        if user.deleted_at is not None:
            return
        timestamp = now()
        await self._collection.update_one({"_id": user_id}, {"$set": {"deleted_at": timestamp, "updated_at": timestamp}})
        await self._revoke_all_sessions(user_id)
        logger.info("user_deleted", user_id=user_id)

    async def _revoke_all_sessions(self, user_id: UUID) -> None:
        await self.core.services.session.delete_user_sessions(user_id)
        moderator = await self.core.services.moderator.find_by_user_id(user_id)
        if moderator is not None:
            await self.core.services.session.delete_moderator_sessions(moderator.id)
