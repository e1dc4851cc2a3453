from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class UnauthorizedError(UserError):
    """Raised when the caller is not authenticated or the session is no longer valid."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(UserError):
    """Raised when an authenticated or identified account is not allowed to proceed (banned, deleted, blacklisted)."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""
