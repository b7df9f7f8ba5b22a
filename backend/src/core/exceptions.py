"""
Custom exception hierarchy for proper error categorization and HTTP status mapping.

This module maps internal errors to HTTP status codes, distinguishing:
- User errors (400-level): Client sent bad data or hit a busy session
- Server errors (500-level): Our infrastructure/code failed
- External errors (503): The generative backend or another third party failed

Usage:
    from src.core.exceptions import ConflictError, ExternalServiceError

    # A second send while one is streaming -> 409 Conflict
    raise ConflictError("A message is already being sent", session_id=session_id)

    # Generative backend unreachable -> 503 Service Unavailable
    raise ExternalServiceError("DashScope timeout", service="dashscope")
"""

from typing import Any


class AppError(Exception):
    """
    Base application error with HTTP status mapping.

    All custom exceptions inherit from this to enable consistent error handling.
    """

    # Default status code (subclasses override)
    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional key-value pairs for logging (e.g., user_id, chat_id)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON response and structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """User provided invalid input (e.g., blank message, bad risk tolerance)."""

    status_code = 400
    error_type = "validation_error"


class AuthenticationError(AppError):
    """Authentication failed (e.g., invalid signature, expired token)."""

    status_code = 401
    error_type = "authentication_error"


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404
    error_type = "not_found_error"


class ConflictError(AppError):
    """Request conflicts with the current state (e.g., send while SENDING)."""

    status_code = 409
    error_type = "conflict_error"


# ===== 500-level: Server Errors =====


class DatabaseError(AppError):
    """
    Database operation failed (connection, query, schema issues).

    Maps to 500 Internal Server Error (our infrastructure problem).
    """

    status_code = 500
    error_type = "database_error"


class ConfigurationError(AppError):
    """
    Application misconfigured (e.g., missing API key, invalid settings).

    Should be caught during startup or session start, not mid-stream.
    """

    status_code = 500
    error_type = "configuration_error"


# ===== 503: External Service Errors =====


class ExternalServiceError(AppError):
    """
    External service unavailable or returned error.

    Examples:
        - DashScope model error or timeout
        - Connection reset mid-stream

    Maps to 503 Service Unavailable (third-party problem, retry may help).
    """

    status_code = 503
    error_type = "external_service_error"

    def __init__(self, message: str, service: str, **context: Any):
        """
        Initialize with service name for easier debugging.

        Args:
            message: Error description
            service: Service identifier (e.g., "dashscope", "mongodb")
            **context: Additional context (e.g., session_id, model)
        """
        super().__init__(message, service=service, **context)
