import secrets
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from justadrop.core.core import Service
from justadrop.core.modules.otp.models import OtpCode
from justadrop.errors import ValidationError
from justadrop.utils import now

logger = structlog.get_logger(__name__)

# Shared by "wrong code", "expired code" and "no code sent" so callers cannot tell them apart
INVALID_OTP_MESSAGE = "Invalid or expired OTP code"


def generate_otp_code(length: int) -> str:
    """Generate a numeric code of exactly `length` digits (no leading-zero loss)."""
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


class OtpService(Service):
    """Issues and consumes one-time passcodes.

    Only the newest unconsumed code of an identifier is ever valid: issuing a new
    code deletes the outstanding ones, and verification always reads the most
    recent row before consuming it with a conditional update.
    """

    code_generator: Callable[[int], str] = staticmethod(generate_otp_code)

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("otp_codes")

    async def on_start(self) -> None:
        await self._collection.create_index([("identifier", 1), ("created_at", -1)])
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def issue_otp(self, identifier: str) -> None:
        """Store a fresh code for the identifier and queue the email carrying it.

        The code is deliberately not returned. If queueing the email fails the
        code stays valid; the failure is only logged.
        """
        config = self.core.config
        issued_at = now()
        otp = OtpCode(
            identifier=identifier,
            code=self.code_generator(config.otp_code_length),
            created_at=issued_at,
            expires_at=issued_at + timedelta(minutes=config.otp_ttl_minutes),
        )

        superseded = await self._collection.delete_many({"identifier": identifier, "consumed_at": None})
        await self._collection.insert_one(otp.to_mongo())
        logger.info("otp_issued", identifier=identifier, superseded=superseded.deleted_count)

        try:
            await self.core.services.email.send_otp_email(identifier, otp.code, config.otp_ttl_minutes)
        except Exception:
            logger.exception("otp_email_enqueue_failed", identifier=identifier)

    async def verify_otp(self, identifier: str, code: str) -> bool:
        """Consume the identifier's newest live code if it matches; True on success."""
        doc = await self._collection.find_one(
            {"identifier": identifier, "consumed_at": None, "expires_at": {"$gt": now()}},
            sort=[("created_at", -1)],
        )
        otp = OtpCode.from_mongo(doc)
        if otp is None or not secrets.compare_digest(otp.code.encode("utf-8"), code.encode("utf-8")):
            logger.info("otp_rejected", identifier=identifier)
            return False

        # Concurrent verifies of the same code: only one update matches
        result = await self._collection.update_one({"_id": otp.id, "consumed_at": None}, {"$set": {"consumed_at": now()}})
        if result.modified_count != 1:
            logger.info("otp_rejected", identifier=identifier)
            return False

        logger.info("otp_verified", identifier=identifier)
        return True

    async def consume_otp(self, identifier: str, code: str) -> None:
        """Like verify_otp, but raises the generic ValidationError on failure."""
        if not await self.verify_otp(identifier, code):
            raise ValidationError(INVALID_OTP_MESSAGE)
