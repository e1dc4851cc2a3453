from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from justadrop.core.core import Service
from justadrop.core.modules.moderator.models import Moderator, ModeratorAccount
from justadrop.core.modules.user.validators import validate_email
from justadrop.errors import ForbiddenError, NotFoundError, ValidationError
from justadrop.utils import now

logger = structlog.get_logger(__name__)


class ModeratorService(Service):
    """Manages moderator records and their activation state."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("moderators")

    async def on_start(self) -> None:
        await self._collection.create_index([("user_id", 1)], unique=True)

    async def find_moderator(self, moderator_id: UUID) -> Moderator | None:
        return Moderator.from_mongo(await self._collection.find_one({"_id": moderator_id}))

    async def find_by_user_id(self, user_id: UUID) -> Moderator | None:
        return Moderator.from_mongo(await self._collection.find_one({"user_id": user_id}))

    async def get_account(self, moderator_id: UUID) -> ModeratorAccount | None:
        """Load a moderator together with its user, or None if either is missing."""
        moderator = await self.find_moderator(moderator_id)
        if moderator is None:
            return None
        return await self._join_user(moderator)

    async def get_account_by_user_id(self, user_id: UUID) -> ModeratorAccount | None:
        moderator = await self.find_by_user_id(user_id)
        if moderator is None:
            return None
        return await self._join_user(moderator)

    async def count_moderators(self) -> int:
        return await self._collection.count_documents({})

    async def create_moderator(self, user_id: UUID, assigned_regions: list[str] | None = None) -> Moderator:
        if await self.find_by_user_id(user_id) is not None:
            raise ValidationError(f"User '{user_id}' is already a moderator")

        moderator = Moderator(user_id=user_id, assigned_regions=assigned_regions or [])
        await self._collection.insert_one(moderator.to_mongo())
        logger.info("moderator_created", moderator_id=moderator.id, user_id=user_id)
        return moderator

    async def seed_moderator(self, email: str) -> ModeratorAccount:
        """Create the very first moderator together with a verified user account."""
        if await self.count_moderators() != 0:
            raise ValidationError("Moderator already exists")

        email = validate_email(email)
        if await self.core.services.user.find_by_email(email) is not None:
            raise ForbiddenError("User already exists")

        user = await self.core.services.user.create_user(email, email_verified=True)
        moderator = await self.create_moderator(user.id)
        return ModeratorAccount(moderator=moderator, user=user)

    async def set_active(self, moderator_id: UUID, is_active: bool) -> ModeratorAccount:
        """Activate or deactivate a moderator; deactivation revokes all their sessions."""
        if await self.find_moderator(moderator_id) is None:
            raise NotFoundError(f"Moderator '{moderator_id}' not found")

        await self._collection.update_one({"_id": moderator_id}, {"$set": {"is_active": is_active, "updated_at": now()}})
        if not is_active:
            await self.core.services.session.delete_moderator_sessions(moderator_id)
        logger.info("moderator_active_changed", moderator_id=moderator_id, is_active=is_active)

        account = await self.get_account(moderator_id)
        if account is None:
            raise NotFoundError(f"Moderator '{moderator_id}' not found")
        return account

    async def _join_user(self, moderator: Moderator) -> ModeratorAccount | None:
        user = await self.core.services.user.find_user(moderator.user_id)
        if user is None:
            return None
        return ModeratorAccount(moderator=moderator, user=user)
