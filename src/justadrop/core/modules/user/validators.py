from justadrop.errors import ValidationError
from justadrop.utils import normalize_email


def validate_email(email: str | None) -> str:
    """Validate an email address and return it normalized.

    Only the presence of an "@" is checked; deliverability is proven by the OTP itself.

    Raises:
        ValidationError: If the address is empty or has no "@"
    """
    if not email or "@" not in email:
        raise ValidationError("Valid email is required")
    return normalize_email(email)
