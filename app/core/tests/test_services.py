"""
Tests for ServiceResult.

Covers the failure paths services use: building a result from an
application exception and rendering it for a REST response.
"""

from core.exceptions import BaseApplicationError, ValidationError
from core.services import ServiceResult


class RetryableError(BaseApplicationError):
    default_error_code = "TRY_AGAIN"
    retryable = True


class TestServiceResult:
    def test_success_response(self):
        result = ServiceResult.success(3)

        assert bool(result) is True
        assert result.to_response() == {"success": True, "data": 3}

    def test_from_validation_error_keeps_field_errors(self):
        error = ValidationError(
            "Invalid message data",
            details={"errors": {"to": ["Recipient is required"]}},
        )

        result = ServiceResult.from_exception(error)

        assert bool(result) is False
        assert result.to_response() == {
            "success": False,
            "error": "Invalid message data",
            "error_code": "VALIDATION_ERROR",
            "errors": {"to": ["Recipient is required"]},
        }

    def test_from_retryable_error(self):
        result = ServiceResult.from_exception(RetryableError("Store unavailable"))

        assert result.error_code == "TRY_AGAIN"
        assert result.retryable is True
        assert result.to_response()["retryable"] is True

    def test_exception_str_includes_code(self):
        error = ValidationError("Invalid message data")

        assert str(error) == "[VALIDATION_ERROR] Invalid message data"
        assert error.details == {}
