"""Email outbox models."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from justadrop.core.db import MongoModel
from justadrop.utils import now


class OutboxStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"  # gave up after email_max_attempts


class OutboxMessage(MongoModel):
    """Transactional email waiting to be delivered.

    Written after the business change it reports on; delivered and retried by
    the outbox worker independently of the request that queued it.
    """

    to: str
    subject: str
    html: str
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    next_attempt_at: datetime = Field(default_factory=now)
    last_error: str | None = None
    created_at: datetime = Field(default_factory=now)
    sent_at: datetime | None = None
