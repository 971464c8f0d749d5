"""
Chat-specific exceptions.

Exception Hierarchy:
    BaseApplicationError (core.exceptions)
    ├── AuthError - WebSocket handshake credential rejected
    └── PersistenceError - Message store could not complete a write
"""

from core.exceptions import BaseApplicationError


class AuthError(BaseApplicationError):
    """
    Raised when a session credential cannot be verified.

    The message is the same for every cause (missing, malformed, expired,
    bad signature) so clients learn nothing about which check failed.
    """

    default_error_code: str = "AUTH_ERROR"
    default_message: str = "Invalid or expired credentials"

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(message or self.default_message, **kwargs)


class PersistenceError(BaseApplicationError):
    """Raised when the message store fails. Safe to retry."""

    default_error_code: str = "PERSISTENCE_ERROR"
    retryable: bool = True
