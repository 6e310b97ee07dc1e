"""
Shared error handling for the storefront edge layer.
"""

from typing import Dict, Any, Optional

from opentelemetry import trace
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class EdgeLayerException(Exception):
    """Base exception for edge layer components."""

    status_code = 500

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


class BackendUnavailableError(EdgeLayerException):
    """The commerce backend could not be reached or answered with an error.

    Connection failures, timeouts, HTTP error statuses and malformed payloads
    all map here so callers handle a single "fetch failed" condition.
    """

    status_code = 503

    def __init__(self, message: str = "Commerce backend unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("BACKEND_UNAVAILABLE", message, details)


class RegionNotFoundError(EdgeLayerException):
    """No region serves the requested locale code."""

    status_code = 404

    def __init__(self, locale_code: Optional[str], details: Optional[Dict[str, Any]] = None):
        self.locale_code = locale_code
        super().__init__(
            "REGION_NOT_FOUND",
            f"No region serves locale '{locale_code}'",
            {"locale_code": locale_code, **(details or {})}
        )


class ConfigurationError(EdgeLayerException):
    """A required setting is missing or has no usable fallback."""

    status_code = 503

    def __init__(self, message: str = "Service misconfigured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class EnumerationFailure(EdgeLayerException):
    """Static path enumeration failed for one content type.

    Recorded on the enumeration result as a diagnostic; never aborts a build.
    """

    status_code = 502

    def __init__(self, content_type: str, cause: str, details: Optional[Dict[str, Any]] = None):
        self.content_type = content_type
        self.cause = cause
        super().__init__(
            "ENUMERATION_FAILURE",
            f"Static path enumeration failed for '{content_type}': {cause}",
            {"content_type": content_type, "cause": cause, **(details or {})}
        )


class RenderingModeError(EdgeLayerException):
    """Static parameters were requested for a content type that renders dynamically."""

    status_code = 409

    def __init__(self, content_type: str, details: Optional[Dict[str, Any]] = None):
        self.content_type = content_type
        super().__init__(
            "RENDERING_MODE_ERROR",
            f"Content type '{content_type}' is in DYNAMIC mode; no static parameters are available",
            {"content_type": content_type, **(details or {})}
        )
