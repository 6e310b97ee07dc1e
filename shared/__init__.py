"""
Shared utilities for the storefront edge layer.

This package aggregates common building blocks consumed by the edge service
and the static path build step:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and routing correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Bounded retry decorator
- circuit_breaker: Fail-fast protection for backend calls
- base_service: FastAPI service skeleton with health and metrics routes

Do not import from service_edge into shared/, except in test_helpers.
"""
