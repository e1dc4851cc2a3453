from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from justadrop.core.db import MongoModel
from justadrop.utils import now


class User(MongoModel):
    """End-user account, identified by a normalized email address."""

    email: str
    email_verified: bool = False
    name: str | None = None
    is_banned: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @property
    def in_good_standing(self) -> bool:
        return not self.is_banned and self.deleted_at is None


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    name: str | None = Field(None, description="Display name")
    email_verified: bool = Field(..., description="Whether the email address has been verified")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, email=user.email, name=user.name, email_verified=user.email_verified)
