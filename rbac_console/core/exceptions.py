"""Custom exception classes for the RBAC console.

Each error carries the HTTP status it maps to; ``main.py`` turns any
``RBACConsoleError`` into a ``{"error": message}`` response.
"""

from fastapi import status


class RBACConsoleError(Exception):
    """Base exception for the RBAC console."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(RBACConsoleError):
    """Raised when a required field is missing or malformed."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(RBACConsoleError):
    """Raised on bad credentials or an invalid/expired token."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(RBACConsoleError):
    """Raised when an authenticated identity lacks the required grant."""
    status_code = status.HTTP_403_FORBIDDEN


class AccountDisabledError(AuthorizationError):
    """Raised when the credentials are right but the account is inactive."""
    pass


class NotFoundError(RBACConsoleError):
    """Raised when a referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RBACConsoleError):
    """Raised on a uniqueness violation."""
    status_code = status.HTTP_409_CONFLICT


class InternalError(RBACConsoleError):
    """Raised on unexpected storage or runtime failures."""
    pass
