"""Session management models."""

from datetime import datetime
from enum import StrEnum
from typing import NewType
from uuid import UUID

from pydantic import Field

from justadrop.core.db import MongoModel
from justadrop.utils import now

AuthToken = NewType("AuthToken", str)


class SubjectKind(StrEnum):
    """Kind of principal a session authenticates."""

    USER = "user"
    MODERATOR = "moderator"
    ORGANIZATION = "organization"


class Session(MongoModel):
    """Authentication session for one subject.

    Indexed on auth_token - unique, (subject_kind, subject_id), expires_at.
    """

    subject_kind: SubjectKind
    subject_id: UUID
    auth_token: str
    expires_at: datetime
    created_at: datetime = Field(default_factory=now)
    last_accessed_at: datetime = Field(default_factory=now)

    def is_expired(self, at: datetime | None = None) -> bool:
        return self.expires_at <= (at or now())
