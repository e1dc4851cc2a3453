"""Liquid templates for transactional emails."""

from enum import StrEnum
from typing import Any

import structlog
from liquid import Environment

logger = structlog.get_logger(__name__)


class EmailTemplate(StrEnum):
    OTP_CODE = "otp_code"
    WELCOME = "welcome"
    ORGANIZATION_REGISTERED = "organization_registered"
    ORGANIZATION_APPROVED = "organization_approved"
    ORGANIZATION_REJECTED = "organization_rejected"


# template -> (subject, html body); user-provided values are escaped in the body
TEMPLATES: dict[EmailTemplate, tuple[str, str]] = {
    EmailTemplate.OTP_CODE: (
        "Your Just a Drop verification code",
        "<h1>Your verification code</h1>"
        "<p>Use <strong>{{ code }}</strong> to sign in to Just a Drop.</p>"
        "<p>The code expires in {{ ttl_minutes }} minutes and can be used once.</p>"
        "<p>If you did not request it, you can ignore this email.</p>",
    ),
    EmailTemplate.WELCOME: (
        "Welcome to Just a Drop!",
        "<h1>Welcome!</h1>"
        "<p>Thank you for joining Just a Drop as a volunteer.</p>"
        "<p>You can now start browsing and applying for volunteer opportunities in your area.</p>",
    ),
    EmailTemplate.ORGANIZATION_REGISTERED: (
        "Organization Registration Received",
        "<h1>Thank you for registering, {{ name | escape }}!</h1>"
        "<p>Your organization registration has been received and is currently pending approval.</p>"
        "<p>Once approved, you'll be able to post volunteer opportunities.</p>",
    ),
    EmailTemplate.ORGANIZATION_APPROVED: (
        "Organization Approved - Welcome to Just a Drop!",
        "<h1>Congratulations {{ name | escape }}!</h1>"
        "<p>Your organization has been approved on Just a Drop.</p>"
        "{% if notes %}<p><strong>Moderator notes:</strong> {{ notes | escape }}</p>{% endif %}",
    ),
    EmailTemplate.ORGANIZATION_REJECTED: (
        "Organization Registration Update",
        "<h1>Hello {{ name | escape }},</h1>"
        "<p>Unfortunately, we are unable to approve your organization registration at this time.</p>"
        "<p><strong>Reason:</strong> {{ notes | escape }}</p>",
    ),
}

_env = Environment()


def render_email(template: EmailTemplate, **context: Any) -> tuple[str, str]:
    """Render a template into (subject, html).

    Raises:
        ValueError: If template rendering fails
    """
    subject, body = TEMPLATES[template]
    try:
        return subject, _env.from_string(body).render(**context)
    except Exception as e:
        logger.exception("email_render_failed", template=template, error=str(e))
        raise ValueError(f"Failed to render email template '{template}': {e}") from e
