from justadrop.errors import ValidationError

MIN_PASSWORD_LENGTH = 8


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 8 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")


def validate_organization_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Organization name is required")
    return name
