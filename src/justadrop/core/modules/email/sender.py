"""Email delivery via the Resend API."""

import asyncio

import resend
import structlog

logger = structlog.get_logger(__name__)


def _send_sync(api_key: str, sender: str, to: str, subject: str, html: str) -> None:
    resend.api_key = api_key
    resend.Emails.send({"from": sender, "to": [to], "subject": subject, "html": html})


async def send_email(api_key: str | None, sender: str, to: str, subject: str, html: str) -> tuple[bool, str | None]:
    """Send one email through Resend.

    The Resend client is synchronous, so the call runs in a worker thread.

    Returns:
        Tuple of (success: bool, error_message: str | None)
        - (True, None) on success
        - (False, error_message) on failure, including a missing API key
    """
    if not api_key:
        logger.warning("email_not_configured", to=to)
        return False, "Email service not configured"

    try:
        await asyncio.to_thread(_send_sync, api_key, sender, to, subject, html)
    except Exception as e:
        error_msg = str(e)
        logger.exception("email_send_failed", to=to, error=error_msg)
        return False, error_msg
    else:
        logger.debug("email_sent", to=to, subject=subject)
        return True, None
