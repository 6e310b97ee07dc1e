"""
Edge routing package.
"""

from .edge_router import EdgeRouter, RoutingAction, RoutingDecision
from .middleware import LocaleRoutingMiddleware

__all__ = ["EdgeRouter", "RoutingAction", "RoutingDecision", "LocaleRoutingMiddleware"]
