"""
AI-specific exceptions.

Exception Hierarchy:
    ExternalServiceError (core.exceptions)
    └── GenerationError - Reply generation failed or timed out

GenerationError never reaches chat users; BotResponder replaces the reply
with the configured fallback text.
"""

from core.exceptions import ExternalServiceError


class GenerationError(ExternalServiceError):
    """Raised when the provider call fails, times out or returns nothing."""

    default_error_code: str = "GENERATION_ERROR"
