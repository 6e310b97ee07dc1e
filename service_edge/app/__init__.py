"""
Edge service package for the storefront edge layer.

The edge service fronts storefront requests, enforcing:
- Locale/region context: every request path carries a locale served by a region
- Region caching: in-memory snapshot, TTL-bounded, single-flight refresh
- Static path enumeration: build-time best-effort listing with dynamic fallback

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: HTTP client for the commerce backend.
- app.regions: Region models, locale helpers, and the resolver cache.
- app.routing: Edge router state machine and its Starlette middleware.
- app.static_paths: Enumerator, rendering manifest, and the build CLI.
"""
