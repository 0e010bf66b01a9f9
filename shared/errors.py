"""
Shared error handling for the Lenslearn services.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(extra="allow")

    error: str


class ServiceException(Exception):
    """Base exception for Lenslearn services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message, **self.details)


class ValidationError(ServiceException):
    """Missing or malformed client input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ServiceError(ServiceException):
    """Service-related errors."""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_ERROR", message, details)


class UpstreamError(ServiceException):
    """The generation provider answered with a non-success status.

    Status and raw body are passed through to the caller for diagnostics.
    """

    status_code = 502

    def __init__(self, status: int, body: str, message: str = "OpenAI API error"):
        self.upstream_status = status
        self.upstream_body = body
        super().__init__("UPSTREAM_ERROR", message, {"status": status, "body": body})


class TransportError(ServiceException):
    """The generation provider could not be reached."""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_ERROR", message, details)


class ConfigurationError(ServiceException):
    """Fatal misconfiguration detected at startup."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
