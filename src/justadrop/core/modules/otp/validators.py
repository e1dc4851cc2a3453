from justadrop.errors import ValidationError

OTP_CODE_LENGTH = 6


def validate_otp_code(code: str | None, length: int = OTP_CODE_LENGTH) -> str:
    """Check the submitted code has the expected length before any lookup.

    The code is otherwise compared as-is; no whitespace is stripped.
    """
    if not code or len(code) != length:
        raise ValidationError(f"Valid {length}-digit OTP code is required")
    return code
