"""
Region resolution package.

Holds the process-lifetime region snapshot. Only the resolver's refresh
path replaces the snapshot; lookups never mutate it.
"""

from .models import Region, RegionSnapshot
from .resolver import RegionResolver

__all__ = ["Region", "RegionSnapshot", "RegionResolver"]
