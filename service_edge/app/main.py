"""
Edge service for the storefront edge layer.
"""

from typing import Any, Dict, Optional

from fastapi import Request

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ConfigurationError, RegionNotFoundError, RenderingModeError
from shared.logging import get_logger

from .adapters.backend_client import CommerceBackendClient
from .regions.resolver import RegionResolver
from .routing.edge_router import EdgeRouter
from .routing.middleware import LocaleRoutingMiddleware
from .static_paths.manifest import RenderingManifest

SERVICE_NAME = "edge"
SERVICE_PORT = 8000


class EdgeService(BaseService):
    """Edge service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        backend_client: Optional[CommerceBackendClient] = None,
    ):
        config = config or get_config(SERVICE_NAME, SERVICE_PORT)
        self.missing_settings = config.missing_required()

        # Components exist before BaseService wires middleware and routes.
        self.backend_client = backend_client
        if self.backend_client is None and config.backend_url:
            self.backend_client = CommerceBackendClient(
                config.backend_url,
                publishable_key=config.publishable_key,
                timeout=config.region_fetch_timeout_seconds,
            )

        self.resolver: Optional[RegionResolver] = None
        if self.backend_client is not None:
            self.resolver = RegionResolver(
                self.backend_client,
                ttl_seconds=config.region_cache_ttl_seconds,
                fetch_timeout=config.region_fetch_timeout_seconds,
                aliases=config.locale_aliases,
            )

        self.edge_router = EdgeRouter(
            self.resolver,
            default_locale=config.default_locale,
            geo_header=config.geo_header,
            locale_tokens=config.locale_tokens,
        )
        self.rendering_manifest = self._load_manifest(config.rendering_manifest_path)

        super().__init__(SERVICE_NAME, SERVICE_PORT, config=config)

        # Metrics exist only after BaseService initialisation.
        if self.resolver is not None:
            self.resolver.metrics = self.metrics
        self.edge_router.metrics = self.metrics

        if self.missing_settings:
            self.logger.error(
                "Required configuration missing; storefront requests will be answered with 503",
                missing=self.missing_settings,
            )

        @self.app.on_event("startup")
        async def _startup():
            if self.resolver is not None:
                await self.resolver.warmup()

        @self.app.on_event("shutdown")
        async def _shutdown():
            if self.backend_client is not None:
                await self.backend_client.close()

        self._setup_edge_routes()
        self.app.state.edge_service = self

    def _setup_middleware(self):
        """Register locale routing inside the shared request timing middleware."""
        self.app.add_middleware(
            LocaleRoutingMiddleware,
            router=self.edge_router,
            bypass_prefixes=self.config.bypass_prefixes,
            redirect_status_code=self.config.redirect_status_code,
        )
        super()._setup_middleware()

    def _load_manifest(self, path: Optional[str]) -> Optional[RenderingManifest]:
        if not path:
            return None
        logger = get_logger(f"{SERVICE_NAME}.service")
        try:
            manifest = RenderingManifest.load(path)
        except FileNotFoundError:
            logger.warning("Rendering manifest not found; every content type renders dynamically", path=path)
            return None
        except ValueError as exc:
            logger.error("Rendering manifest unreadable; every content type renders dynamically", path=path, error=str(exc))
            return None
        logger.info("Rendering manifest loaded", path=path, modes=manifest.summary())
        return manifest

    async def _check_dependencies(self) -> Dict[str, str]:
        dependencies = {}
        if self.resolver is None:
            dependencies["backend"] = "misconfigured"
        else:
            dependencies["region_cache"] = self.resolver.cache_status()
            dependencies["backend_circuit"] = self.backend_client.circuit_breaker.state.value
        dependencies["rendering_manifest"] = "loaded" if self.rendering_manifest else "absent"
        return dependencies

    def _require_resolver(self) -> RegionResolver:
        if self.resolver is None:
            raise ConfigurationError(
                "Backend address is not configured",
                details={"reason": "backend_url_missing", "missing": self.missing_settings},
            )
        return self.resolver

    def _setup_edge_routes(self):
        """Set up edge routes."""

        @self.app.get("/api/v1/regions")
        async def list_regions():
            """Describe the cached region snapshot without refreshing it."""
            return self._require_resolver().describe()

        @self.app.post("/api/v1/regions/refresh")
        async def refresh_regions():
            """Force a region refresh (joins one already in flight)."""
            resolver = self._require_resolver()
            await resolver.refresh()
            return resolver.describe()

        @self.app.get("/api/v1/regions/{locale_code}")
        async def resolve_region(locale_code: str):
            """Resolve one locale code to its region."""
            resolver = self._require_resolver()
            region = await resolver.resolve(locale_code)
            if region is None:
                raise RegionNotFoundError(locale_code)
            return {
                "locale_code": locale_code,
                "canonical": resolver.normalize(locale_code),
                "region": region.to_dict(),
            }

        @self.app.get("/api/v1/rendering-modes")
        async def rendering_modes():
            """Rendering mode per content type from the build manifest."""
            if self.rendering_manifest is None:
                return {"manifest": None, "modes": {}}
            return {
                "manifest": self.rendering_manifest.generated_at.isoformat(),
                "modes": self.rendering_manifest.summary(),
                "diagnostics": [f.to_response().model_dump() for f in self.rendering_manifest.diagnostics],
            }

        @self.app.get("/api/v1/rendering-modes/{content_type}/params")
        async def static_params(content_type: str):
            """Static parameters for a STATIC content type; 409 for DYNAMIC ones."""
            if self.rendering_manifest is None:
                raise RenderingModeError(content_type, details={"cause": "no manifest loaded"})
            return {
                "content_type": content_type,
                "params": self.rendering_manifest.static_params_for(content_type),
            }

        @self.app.get("/{full_path:path}")
        async def storefront_context(full_path: str, request: Request) -> Dict[str, Any]:
            """Hand-off point to the renderer: the routing context for this request."""
            region = getattr(request.state, "region", None)
            return {
                "path": "/" + full_path,
                "locale": getattr(request.state, "locale", None),
                "region_id": region.id if region else None,
                "currency_code": region.currency_code if region else None,
            }


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI app instance."""
    service = EdgeService(config)
    return service.app


if __name__ == "__main__":
    EdgeService().run()
