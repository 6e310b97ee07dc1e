"""
Build manifest handed from static path enumeration to the renderer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from shared.errors import EnumerationFailure, RenderingModeError

from .models import EnumerationResult, RenderingMode

MANIFEST_VERSION = 1


@dataclass
class RenderingManifest:
    """Per content type rendering decision, made once at build time."""

    results: Dict[str, EnumerationResult]
    locales: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_results(cls, results: Iterable[EnumerationResult], locales: Optional[List[str]] = None) -> "RenderingManifest":
        return cls(results={r.content_type: r for r in results}, locales=list(locales or []))

    def mode_for(self, content_type: str) -> RenderingMode:
        """Rendering mode for a content type; anything not enumerated renders dynamically."""
        result = self.results.get(content_type)
        return result.mode if result else RenderingMode.DYNAMIC

    def static_params_for(self, content_type: str) -> List[Dict[str, str]]:
        """Path parameters to pre-render.

        Raises ``RenderingModeError`` for a DYNAMIC content type: its pages
        must be rendered without assuming pre-known parameters.
        """
        result = self.results.get(content_type)
        if result is None or result.mode != RenderingMode.STATIC:
            raise RenderingModeError(
                content_type,
                details={"cause": result.failure.cause if result and result.failure else "not enumerated"},
            )

        if not self.locales:
            return [path.params() for path in result.paths]
        return [path.params(locale) for locale in self.locales for path in result.paths]

    @property
    def diagnostics(self) -> List[EnumerationFailure]:
        return [r.failure for r in self.results.values() if r.failure is not None]

    @property
    def dynamic_content_types(self) -> List[str]:
        return [name for name, r in self.results.items() if r.mode == RenderingMode.DYNAMIC]

    def summary(self) -> Dict[str, str]:
        return {name: r.mode.value for name, r in self.results.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "generated_at": self.generated_at.isoformat(),
            "locales": list(self.locales),
            "content_types": {name: r.to_dict() for name, r in self.results.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenderingManifest":
        version = data.get("version")
        if version != MANIFEST_VERSION:
            raise ValueError(f"Unsupported manifest version: {version!r}")
        generated_at = data.get("generated_at")
        return cls(
            results={
                name: EnumerationResult.from_dict(item)
                for name, item in data.get("content_types", {}).items()
            },
            locales=list(data.get("locales", [])),
            generated_at=datetime.fromisoformat(generated_at) if generated_at else datetime.now(timezone.utc),
        )

    def write(self, path: Union[str, Path]) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2))
        return target

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RenderingManifest":
        return cls.from_dict(json.loads(Path(path).read_text()))
