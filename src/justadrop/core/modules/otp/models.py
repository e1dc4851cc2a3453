from datetime import datetime

from pydantic import Field

from justadrop.core.db import MongoModel
from justadrop.utils import now


class OtpCode(MongoModel):
    """One-time passcode issued to an identifier (a normalized email).

    Indexed on (identifier, created_at) and expires_at (TTL).
    """

    identifier: str
    code: str
    expires_at: datetime
    consumed_at: datetime | None = None
    created_at: datetime = Field(default_factory=now)
