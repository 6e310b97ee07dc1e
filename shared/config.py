"""
Shared configuration management for the storefront edge layer.
"""

from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONTENT_TYPES = ["category", "product", "collection"]
DEFAULT_BYPASS_PREFIXES = ["/health", "/metrics", "/api/", "/docs", "/redoc", "/openapi.json", "/_next/"]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Commerce backend
    backend_url: Optional[str] = Field(default=None)
    publishable_key: Optional[str] = Field(default=None)

    # Region cache
    default_locale: Optional[str] = Field(default="us")
    region_cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    region_fetch_timeout_seconds: float = Field(default=3.0, gt=0)
    locale_aliases: Dict[str, str] = Field(default_factory=dict)

    # Routing
    geo_header: Optional[str] = Field(default=None)
    locale_tokens: List[str] = Field(default_factory=list)
    redirect_status_code: int = Field(default=307)
    bypass_prefixes: List[str] = Field(default_factory=lambda: list(DEFAULT_BYPASS_PREFIXES))

    # Static path enumeration (build time)
    enumeration_timeout_seconds: float = Field(default=20.0, gt=0)
    enumeration_request_timeout_seconds: float = Field(default=5.0, gt=0)
    enumeration_page_size: int = Field(default=100, gt=0)
    enumeration_content_types: List[str] = Field(default_factory=lambda: list(DEFAULT_CONTENT_TYPES))
    rendering_manifest_path: Optional[str] = Field(default=None)

    # Observability
    enable_tracing: bool = Field(default=False)

    @field_validator("backend_url", "default_locale", "publishable_key", "geo_header", "rendering_manifest_path", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("backend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else value

    @field_validator("redirect_status_code")
    @classmethod
    def _check_redirect_status(cls, value: int) -> int:
        if value not in (301, 302, 303, 307, 308):
            raise ValueError(f"redirect_status_code must be a redirect status, got {value}")
        return value

    def missing_required(self) -> List[str]:
        """Return the names of required settings that are not set."""
        missing = []
        if not self.backend_url:
            missing.append("backend_url")
        return missing


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
