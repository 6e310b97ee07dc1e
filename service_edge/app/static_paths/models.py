"""
Static path enumeration data models.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from shared.errors import EnumerationFailure


class RenderingMode(str, Enum):
    """How a content type is rendered: from pre-enumerated parameters or on demand."""
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class ContentTypeSpec:
    """Where the backend lists the identifiers of one content type."""
    name: str
    endpoint: str
    collection_key: str
    identifier_field: str = "handle"
    param_name: str = "handle"


DEFAULT_CONTENT_TYPES: Dict[str, ContentTypeSpec] = {
    "category": ContentTypeSpec(
        name="category",
        endpoint="/store/product-categories",
        collection_key="product_categories",
        param_name="category",
    ),
    "product": ContentTypeSpec(
        name="product",
        endpoint="/store/products",
        collection_key="products",
    ),
    "collection": ContentTypeSpec(
        name="collection",
        endpoint="/store/collections",
        collection_key="collections",
    ),
}


@dataclass(frozen=True)
class StaticPath:
    """One set of path parameters to pre-render."""
    identifier: str
    param_name: str = "handle"

    def params(self, locale: Optional[str] = None) -> Dict[str, str]:
        values = {self.param_name: self.identifier}
        if locale is not None:
            values = {"locale": locale, **values}
        return values


@dataclass(frozen=True)
class IdentifierPage:
    """One page of identifiers returned by the backend."""
    identifiers: List[str]
    count: Optional[int] = None


@dataclass(frozen=True)
class EnumerationResult:
    """Outcome of enumerating one content type.

    An empty ``paths`` with mode STATIC means the backend really has nothing
    to pre-render; a failure always comes with mode DYNAMIC.
    """
    content_type: str
    paths: Tuple[StaticPath, ...]
    mode: RenderingMode
    failure: Optional[EnumerationFailure] = None
    duration_seconds: float = 0.0

    @property
    def identifiers(self) -> List[str]:
        return [path.identifier for path in self.paths]

    @classmethod
    def failed(cls, failure: EnumerationFailure, duration_seconds: float = 0.0) -> "EnumerationResult":
        return cls(
            content_type=failure.content_type,
            paths=(),
            mode=RenderingMode.DYNAMIC,
            failure=failure,
            duration_seconds=duration_seconds,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_type": self.content_type,
            "mode": self.mode.value,
            "paths": [{"identifier": p.identifier, "param_name": p.param_name} for p in self.paths],
            "diagnostic": self.failure.to_response().model_dump() if self.failure else None,
            "duration_seconds": round(self.duration_seconds, 4),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnumerationResult":
        content_type = data["content_type"]
        diagnostic = data.get("diagnostic")
        failure = None
        if diagnostic:
            cause = diagnostic.get("details", {}).get("cause") or diagnostic.get("message", "unknown")
            failure = EnumerationFailure(content_type, cause)
        return cls(
            content_type=content_type,
            paths=tuple(
                StaticPath(identifier=p["identifier"], param_name=p.get("param_name", "handle"))
                for p in data.get("paths", [])
            ),
            mode=RenderingMode(data.get("mode", RenderingMode.DYNAMIC.value)),
            failure=failure,
            duration_seconds=float(data.get("duration_seconds", 0.0)),
        )
