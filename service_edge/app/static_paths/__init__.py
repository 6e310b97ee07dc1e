"""
Static path enumeration package (build time only).

Never invoked per request. Produces a ``RenderingManifest`` whose
STATIC/DYNAMIC decision the renderer must consult before choosing a
rendering strategy.
"""

from .enumerator import StaticPathEnumerator
from .manifest import RenderingManifest
from .models import ContentTypeSpec, EnumerationResult, RenderingMode, StaticPath

__all__ = [
    "StaticPathEnumerator",
    "RenderingManifest",
    "ContentTypeSpec",
    "EnumerationResult",
    "RenderingMode",
    "StaticPath",
]
