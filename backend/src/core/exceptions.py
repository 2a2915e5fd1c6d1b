"""Custom exceptions for the Preflight backend."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Longest raw model excerpt attached to a parsing error
RAW_EXCERPT_LIMIT = 500

# Exception type → safe user-facing message mapping
_SAFE_MESSAGES: dict[str, str] = {
    "AuthenticationError": "Authentication failed. Please check your API key.",
    "ValidationError": "The provided input is invalid. Please check and try again.",
    "RequestBodyError": "Request body must be valid JSON.",
    "ConfigurationError": "The service is not configured. Please contact an administrator.",
    "ModelResponseParsingError": "The AI response could not be parsed.",
    "ModelServiceError": "The AI service is temporarily unavailable.",
    "ModelTimeoutError": "The AI service did not respond in time. Please try again.",
    "ValueError": "The provided value is invalid.",
}

_DEFAULT_MESSAGE = "An error occurred. Please try again."


def sanitize_error(e: Exception) -> str:
    """Map an exception to a safe, user-facing error message.

    Walks the exception's MRO so subclasses inherit their parent's
    message. Full details are only ever logged server-side.

    Args:
        e: The exception to sanitize.

    Returns:
        A safe, generic error message string.
    """
    for cls in type(e).__mro__:
        safe_msg = _SAFE_MESSAGES.get(cls.__name__)
        if safe_msg:
            return safe_msg

    return _DEFAULT_MESSAGE


def truncate_raw(raw: str, limit: int = RAW_EXCERPT_LIMIT) -> str:
    """Cut raw model output down to a diagnostic excerpt."""
    return raw if len(raw) <= limit else raw[:limit]


class PreflightException(Exception):
    """Base exception for all Preflight-specific errors."""

    def __init__(
        self,
        message: str,
        code: str,
        error: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize Preflight exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            error: Stable short error tag returned to callers.
            status_code: HTTP status code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.error = error
        self.status_code = status_code
        self.details = details or {}

    def to_body(self) -> dict[str, Any]:
        """Render the caller-facing JSON error body."""
        return {"error": self.error, "message": self.message, "code": self.code}


class ValidationError(PreflightException):
    """Request validation error (400).

    Raised when required fields are missing or have the wrong shape.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error message.
            field: Name of the invalid field.
            details: Additional validation details.
        """
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            error="Validation error",
            status_code=400,
            details=error_details,
        )


class MissingFieldsError(ValidationError):
    """One or more required request fields are absent (400)."""

    def __init__(self, fields: list[str]) -> None:
        """Initialize missing fields error.

        Args:
            fields: Names of the missing fields, in request order.
        """
        super().__init__(
            message=f"Missing required fields: {', '.join(fields)}",
            details={"missing_fields": list(fields)},
        )


class RequestBodyError(PreflightException):
    """Malformed request encoding (400)."""

    def __init__(self, message: str = "Request body must be valid JSON") -> None:
        """Initialize request body error.

        Args:
            message: Error message.
        """
        super().__init__(
            message=message,
            code="INVALID_JSON",
            error="Invalid JSON",
            status_code=400,
        )


class AuthenticationError(PreflightException):
    """Authentication failed error (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        """Initialize authentication error.

        Args:
            message: Error message.
        """
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            error="Authentication error",
            status_code=401,
        )


class ConfigurationError(PreflightException):
    """Missing service configuration (500). Never recovered."""

    def __init__(self, message: str) -> None:
        """Initialize configuration error.

        Args:
            message: Which setting is missing.
        """
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            error="Configuration error",
            status_code=500,
        )


class ModelResponseParsingError(PreflightException):
    """The model reply held no usable JSON object (500).

    Carries a truncated copy of the raw reply for diagnostics.
    """

    def __init__(self, reason: str, raw_response: str) -> None:
        """Initialize parsing error.

        Args:
            reason: Why the reply was rejected.
            raw_response: The model's raw reply (truncated on storage).
        """
        self.raw_response = truncate_raw(raw_response)
        super().__init__(
            message=f"Failed to parse AI response: {reason}",
            code="AI_RESPONSE_PARSING_ERROR",
            error="AI response parsing error",
            status_code=500,
            details={"reason": reason},
        )

    def to_body(self) -> dict[str, Any]:
        """Render the error body including the raw excerpt."""
        body = super().to_body()
        body["rawResponse"] = self.raw_response
        return body


class ModelServiceError(PreflightException):
    """The generative model call failed (502)."""

    def __init__(self, message: str | None = None) -> None:
        """Initialize model service error.

        Args:
            message: Optional error message.
        """
        super().__init__(
            message=message or "Error communicating with the AI service",
            code="AI_SERVICE_ERROR",
            error="AI service error",
            status_code=502,
        )


class ModelTimeoutError(PreflightException):
    """The generative model call exceeded its timeout (504)."""

    def __init__(self, timeout_seconds: float) -> None:
        """Initialize model timeout error.

        Args:
            timeout_seconds: The timeout that elapsed.
        """
        super().__init__(
            message=f"AI service did not respond within {timeout_seconds:g}s",
            code="AI_SERVICE_TIMEOUT",
            error="AI service timeout",
            status_code=504,
            details={"timeout_seconds": timeout_seconds},
        )
