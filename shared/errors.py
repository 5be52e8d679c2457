"""
Shared error handling for the studio permission engine.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AccessControlException(Exception):
    """Base exception for the permission engine."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthorizationError(AccessControlException):
    """Authorization-related errors.

    Raised directly or through one of the subclasses below. The HTTP layer
    maps ``status_code`` onto its response; the message is safe to show to
    end users and never carries policy detail.
    """

    status_code = 403

    def __init__(self, message: str = "Authorization failed", details: Optional[Dict[str, Any]] = None,
                 code: str = "AUTHORIZATION_ERROR"):
        super().__init__(code, message, details)


class AuthenticationRequiredError(AuthorizationError):
    """No principal where one is mandatory."""

    status_code = 401

    def __init__(self, message: str = "User authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="AUTHENTICATION_REQUIRED")


class InsufficientPermissionError(AuthorizationError):
    """Authenticated, but lacking the required grant."""

    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="INSUFFICIENT_PERMISSION")


class PolicyViolationError(AuthorizationError):
    """Contextual check failed despite base capability."""

    def __init__(self, message: str = "Access denied by policy", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="POLICY_VIOLATION")


class ValidationError(AccessControlException):
    """Malformed caller input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_INPUT", message, details)


class ConfigurationError(AccessControlException):
    """Engine settings could not be loaded."""

    def __init__(self, message: str = "Invalid engine configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
