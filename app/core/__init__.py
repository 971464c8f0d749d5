"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication, chat, ai).
No domain-specific logic lives here.

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - ExternalServiceError: Third-party service failures

Views (import from core.views):
    - health_check: Liveness endpoint for monitoring

Usage:
    from core.services import BaseService, ServiceResult
    from core.exceptions import ValidationError

    class MessageStore(BaseService):
        @classmethod
        def append(cls, ...) -> Message:
            ...
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    ValidationError,
)

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "ExternalServiceError",
]
