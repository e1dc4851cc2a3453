import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from justadrop.core.core import Service
from justadrop.core.modules.email.models import OutboxMessage, OutboxStatus
from justadrop.core.modules.email.sender import send_email
from justadrop.core.modules.email.templates import EmailTemplate, render_email
from justadrop.utils import now

logger = structlog.get_logger(__name__)

RESEND_API_KEY = "RESEND_API_KEY"  # noqa: S105

SendFunc = Callable[[str | None, str, str, str, str], Awaitable[tuple[bool, str | None]]]


class EmailService(Service):
    """Transactional email through an outbox collection.

    Callers only enqueue; a background worker delivers due messages and retries
    failures with exponential backoff, so request latency and success never depend
    on the email provider.
    """

    sender: SendFunc = staticmethod(send_email)

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("email_outbox")
        self._worker: asyncio.Task[None] | None = None

    async def on_start(self) -> None:
        await self._collection.create_index([("status", 1), ("next_attempt_at", 1)])
        if self.core.config.email_worker_enabled:
            self._worker = asyncio.create_task(self._run_worker())
        logger.debug("email_service_started", worker=self._worker is not None)

    async def on_stop(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    async def enqueue(self, to: str, subject: str, html: str) -> OutboxMessage:
        message = OutboxMessage(to=to, subject=subject, html=html)
        await self._collection.insert_one(message.to_mongo())
        logger.debug("email_enqueued", message_id=message.id, to=to)
        return message

    async def enqueue_template(self, to: str, template: EmailTemplate, **context: Any) -> OutboxMessage:
        subject, html = render_email(template, **context)
        return await self.enqueue(to, subject, html)

    async def send_otp_email(self, to: str, code: str, ttl_minutes: int) -> OutboxMessage:
        return await self.enqueue_template(to, EmailTemplate.OTP_CODE, code=code, ttl_minutes=ttl_minutes)

    async def send_welcome_email(self, to: str) -> OutboxMessage:
        return await self.enqueue_template(to, EmailTemplate.WELCOME)

    async def send_organization_registered_email(self, to: str, name: str) -> OutboxMessage:
        return await self.enqueue_template(to, EmailTemplate.ORGANIZATION_REGISTERED, name=name)

    async def send_organization_approved_email(self, to: str, name: str, notes: str | None) -> OutboxMessage:
        return await self.enqueue_template(to, EmailTemplate.ORGANIZATION_APPROVED, name=name, notes=notes)

    async def send_organization_rejected_email(self, to: str, name: str, notes: str) -> OutboxMessage:
        return await self.enqueue_template(to, EmailTemplate.ORGANIZATION_REJECTED, name=name, notes=notes)

    async def list_messages(self, status: OutboxStatus | None = None) -> list[OutboxMessage]:
        query: dict[str, Any] = {} if status is None else {"status": status}
        return await OutboxMessage.list_cursor(self._collection.find(query, sort=[("created_at", 1)]))

    async def deliver_pending(self, limit: int = 50) -> int:
        """Run one delivery pass over due messages and return how many were sent."""
        config = self.core.config
        due = await OutboxMessage.list_cursor(
            self._collection.find(
                {"status": OutboxStatus.PENDING, "next_attempt_at": {"$lte": now()}},
                sort=[("next_attempt_at", 1)],
                limit=limit,
            )
        )
        if not due:
            return 0

        api_key = await self.core.secrets.aget(RESEND_API_KEY)
        delivered = 0
        for message in due:
            if not await self._claim(message):
                continue
            success, error = await self.sender(api_key, config.email_from, message.to, message.subject, message.html)
            attempts = message.attempts + 1
            if success:
                update: dict[str, Any] = {"status": OutboxStatus.SENT, "attempts": attempts, "sent_at": now(), "last_error": None}
                delivered += 1
            elif attempts >= config.email_max_attempts:
                update = {"status": OutboxStatus.FAILED, "attempts": attempts, "last_error": error}
                logger.error("email_delivery_abandoned", message_id=message.id, attempts=attempts, error=error)
            else:
                delay = timedelta(seconds=config.email_retry_base_seconds * 2 ** (attempts - 1))
                update = {"attempts": attempts, "last_error": error, "next_attempt_at": now() + delay}
                logger.warning("email_delivery_retry_scheduled", message_id=message.id, attempts=attempts, delay=delay)
            await self._collection.update_one({"_id": message.id}, {"$set": update})
        return delivered

    async def _claim(self, message: OutboxMessage) -> bool:
        """Lease a due message to this pass; False if another pass got it first."""
        lease = timedelta(seconds=self.core.config.email_claim_lease_seconds)
        claimed = await self._collection.find_one_and_update(
            {"_id": message.id, "status": OutboxStatus.PENDING, "next_attempt_at": {"$lte": now()}},
            {"$set": {"next_attempt_at": now() + lease}},
        )
        return claimed is not None

    async def _run_worker(self) -> None:
        interval = self.core.config.email_poll_interval_seconds
        while True:
            try:
                await self.deliver_pending()
            except Exception:
                logger.exception("email_worker_pass_failed")
            await asyncio.sleep(interval)
