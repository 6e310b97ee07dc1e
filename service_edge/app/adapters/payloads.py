"""
Wire models for the commerce backend store API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CountryPayload(BaseModel):
    """Country entry attached to a region."""
    model_config = ConfigDict(extra="allow")

    iso_2: str = Field(..., min_length=1, description="ISO 3166-1 alpha-2 code")


class RegionPayload(BaseModel):
    """Region as listed by ``GET /store/regions``."""
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    currency_code: Optional[str] = None
    countries: List[CountryPayload] = Field(default_factory=list)
    locales: List[str] = Field(default_factory=list, description="Flat locale list, used when countries are absent")
    metadata: Optional[Dict[str, Any]] = None


class RegionListPayload(BaseModel):
    """Response body of ``GET /store/regions``."""
    regions: List[RegionPayload]


class PagePayload(BaseModel):
    """Pagination envelope of list endpoints."""
    model_config = ConfigDict(extra="allow")

    count: Optional[int] = None
    offset: Optional[int] = None
    limit: Optional[int] = None
