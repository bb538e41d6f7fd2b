"""
Shared error handling for the Network Inventory dashboard backend.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Any = Field(default_factory=dict)


def _current_trace_id() -> Optional[str]:
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            return f"{span_context.trace_id:032x}"
    return None


class InventoryException(Exception):
    """Base exception for dashboard backend services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            trace_id=_current_trace_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(InventoryException):
    """Validation-related errors."""

    status_code = 422

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ApiClientError(Exception):
    """Error raised by the inventory API transport.

    ``status`` is the HTTP status of the failed call, ``0`` for network
    failures and ``408`` for timeouts.
    """

    def __init__(
        self,
        message: str,
        status: int,
        code: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            trace_id=_current_trace_id(),
            code=self.code or "API_ERROR",
            message=self.message,
            details=self.details if self.details is not None else {},
        )

    def __repr__(self) -> str:
        return f"ApiClientError(status={self.status}, code={self.code!r}, message={self.message!r})"


def is_api_error(error: BaseException) -> bool:
    """Check if an error came from the inventory API transport."""
    return isinstance(error, ApiClientError)


def get_error_message(error: BaseException) -> str:
    """Extract a user-facing message from any error."""
    if isinstance(error, ApiClientError):
        return error.message
    message = str(error)
    return message or "An unexpected error occurred"


def is_network_error(error: BaseException) -> bool:
    return is_api_error(error) and (error.status == 0 or error.code == "NETWORK_ERROR")


def is_validation_error(error: BaseException) -> bool:
    return is_api_error(error) and 400 <= error.status < 500


def is_server_error(error: BaseException) -> bool:
    return is_api_error(error) and error.status >= 500


def format_validation_errors(error: ApiClientError) -> List[str]:
    """Format validation error details for display."""
    if not isinstance(error.details, list):
        return [error.message]

    messages = []
    for detail in error.details:
        if isinstance(detail, str):
            messages.append(detail)
        elif isinstance(detail, dict):
            messages.append(detail.get("message") or "Validation error")
        else:
            messages.append("Validation error")
    return messages
