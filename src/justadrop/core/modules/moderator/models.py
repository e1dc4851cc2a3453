from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from justadrop.core.db import MongoModel
from justadrop.core.modules.user.models import User
from justadrop.utils import now


class Moderator(MongoModel):
    """Privileged role attached to a user account.

    `is_active` is independent of the user's own ban/delete state; both must hold
    for the moderator to act.
    """

    user_id: UUID
    is_active: bool = True
    assigned_regions: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class ModeratorAccount(BaseModel):
    """A moderator joined with its underlying user."""

    moderator: Moderator
    user: User

    @property
    def in_good_standing(self) -> bool:
        return self.moderator.is_active and self.user.in_good_standing


class ModeratorView(BaseModel):
    """Moderator information (API representation)."""

    id: UUID = Field(..., description="Moderator ID")
    user_id: UUID = Field(..., description="ID of the underlying user")
    email: str = Field(..., description="Email address of the underlying user")
    name: str | None = Field(None, description="Display name of the underlying user")
    is_active: bool = Field(..., description="Whether the moderator may sign in")
    assigned_regions: list[str] = Field(default_factory=list, description="Regions this moderator reviews")

    @classmethod
    def from_domain(cls, account: ModeratorAccount) -> "ModeratorView":
        return cls(
            id=account.moderator.id,
            user_id=account.user.id,
            email=account.user.email,
            name=account.user.name,
            is_active=account.moderator.is_active,
            assigned_regions=account.moderator.assigned_regions,
        )
