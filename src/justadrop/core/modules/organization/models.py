from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from justadrop.core.db import MongoModel
from justadrop.utils import now


class ApprovalStatus(StrEnum):
    """Moderator review state of an organization.

    Only BLACKLISTED blocks login; PENDING and REJECTED organizations can still
    sign in to see their status and update their registration.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BLACKLISTED = "blacklisted"


class Organization(MongoModel):
    """Organization account with email/password credentials."""

    name: str
    email: str
    password_hash: str  # bcrypt hash
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    approval_notes: str | None = None
    approved_by: UUID | None = None  # moderator who last reviewed
    approved_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @property
    def can_login(self) -> bool:
        return self.approval_status != ApprovalStatus.BLACKLISTED


class OrganizationView(BaseModel):
    """Organization information (API representation)."""

    id: UUID = Field(..., description="Organization ID")
    name: str = Field(..., description="Organization name")
    email: str = Field(..., description="Login and contact email")
    approval_status: ApprovalStatus = Field(..., description="Moderator review state")
    approval_notes: str | None = Field(None, description="Notes left by the reviewing moderator")
    approved_at: datetime | None = Field(None, description="When the organization was approved")
    created_at: datetime = Field(..., description="Registration time")

    @classmethod
    def from_domain(cls, organization: Organization) -> "OrganizationView":
        return cls(
            id=organization.id,
            name=organization.name,
            email=organization.email,
            approval_status=organization.approval_status,
            approval_notes=organization.approval_notes,
            approved_at=organization.approved_at,
            created_at=organization.created_at,
        )
