"""
Shared logging configuration for the storefront edge layer.
"""

import sys
import structlog
import logging
import uuid
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
from contextvars import ContextVar

from opentelemetry import trace

# Context variables for correlation IDs
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
locale_var: ContextVar[Optional[str]] = ContextVar('locale', default=None)
region_id_var: ContextVar[Optional[str]] = ContextVar('region_id', default=None)

# Build-time context: the content type being enumerated
content_type_var: ContextVar[Optional[str]] = ContextVar('content_type', default=None)


def configure_logging(service_name: str, log_level: str = "info", stream: Any = None) -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_trace_context,
            add_correlation_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Logger names are "<service>.<component>"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def add_trace_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add trace context to log events."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            event_dict["trace_id"] = f"{span_context.trace_id:032x}"
        if span_context.span_id != 0:
            event_dict["span_id"] = f"{span_context.span_id:016x}"

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request, routing and enumeration context to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    locale = locale_var.get()
    if locale:
        event_dict.setdefault("locale", locale)

    region_id = region_id_var.get()
    if region_id:
        event_dict.setdefault("region_id", region_id)

    content_type = content_type_var.get()
    if content_type:
        event_dict.setdefault("content_type", content_type)

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_routing_context(locale: Optional[str] = None, region_id: Optional[str] = None):
    """Bind the resolved locale and region to the logging context."""
    if locale:
        locale_var.set(locale)
    if region_id:
        region_id_var.set(region_id)


@contextmanager
def enumeration_context(content_type: str) -> Iterator[None]:
    """Bind the content type being enumerated for every log line in the block.

    Tasks started inside the block (page fetches, retries) inherit the binding.
    """
    token = content_type_var.set(content_type)
    try:
        yield
    finally:
        content_type_var.reset(token)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    locale_var.set(None)
    region_id_var.set(None)
    content_type_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
