"""
Region data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from shared.logging import get_logger

logger = get_logger("edge.regions.models")

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class Region:
    """A backend-defined serving zone covering one or more locale codes.

    Identity matters: every locale a region serves maps to the same instance
    within one snapshot, so equality is object identity.
    """

    id: str
    name: Optional[str]
    locale_codes: Tuple[str, ...]
    currency_code: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "locale_codes": list(self.locale_codes),
            "currency_code": self.currency_code,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class RegionSnapshot:
    """One atomically refreshed view of every region, keyed by canonical locale code.

    ``refreshed_at`` is a monotonic timestamp used for TTL checks;
    ``refreshed_at_wall`` is only for reporting.
    """

    regions: Mapping[str, Region]
    refreshed_at: Optional[float] = None
    refreshed_at_wall: Optional[datetime] = None

    @classmethod
    def empty(cls) -> "RegionSnapshot":
        return cls(regions=_EMPTY)

    @classmethod
    def build(cls, regions: Iterable[Region], refreshed_at: float, refreshed_at_wall: datetime) -> "RegionSnapshot":
        mapping: Dict[str, Region] = {}
        for region in regions:
            for code in region.locale_codes:
                owner = mapping.get(code)
                if owner is not None:
                    logger.warning(
                        "Locale code claimed by more than one region; keeping first",
                        locale_code=code,
                        kept_region=owner.id,
                        ignored_region=region.id,
                    )
                    continue
                mapping[code] = region
        return cls(
            regions=MappingProxyType(mapping),
            refreshed_at=refreshed_at,
            refreshed_at_wall=refreshed_at_wall,
        )

    @property
    def is_populated(self) -> bool:
        return self.refreshed_at is not None

    def age(self, now: float) -> Optional[float]:
        if self.refreshed_at is None:
            return None
        return max(0.0, now - self.refreshed_at)

    def get(self, locale_code: Optional[str]) -> Optional[Region]:
        if not locale_code:
            return None
        return self.regions.get(locale_code)

    def unique_regions(self) -> List[Region]:
        """Regions in snapshot order, each listed once."""
        seen = set()
        ordered = []
        for region in self.regions.values():
            if id(region) not in seen:
                seen.add(id(region))
                ordered.append(region)
        return ordered
