"""
Adapters package for the edge service.

Wraps the commerce backend store API. The adapter owns base URLs,
request shapes, the circuit breaker, and the mapping of every failure
to ``BackendUnavailableError``.
"""

from .backend_client import CommerceBackendClient

__all__ = ["CommerceBackendClient"]
