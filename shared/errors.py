"""
Shared error handling for the update edge cache.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class UpdaterException(Exception):
    """Base exception for update edge cache services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ExternalServiceError(UpdaterException):
    """External service errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class OriginError(UpdaterException):
    """Origin answered with a non-success result code."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("ORIGIN_ERROR", message, details)


class InvalidResponse(UpdaterException):
    """Origin answered with a malformed or incomplete envelope."""

    def __init__(self, message: str = "Invalid data", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_RESPONSE", message, details)


class OriginUnavailable(UpdaterException):
    """Origin answered with a non-success HTTP status."""

    def __init__(self, status_code: int, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__("ORIGIN_UNAVAILABLE", f"Origin returned HTTP {status_code}", details)


class OriginTransportError(ExternalServiceError):
    """Origin could not be reached."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("origin", message, details)


class CacheStoreError(UpdaterException):
    """Cache store transport or capacity failure."""

    def __init__(self, message: str = "Cache store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_STORE_ERROR", message, details)
