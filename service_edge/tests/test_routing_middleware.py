"""
Unit tests for LocaleRoutingMiddleware.
"""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_edge.app.regions.resolver import RegionResolver
from service_edge.app.routing.edge_router import EdgeRouter
from service_edge.app.routing.middleware import LocaleRoutingMiddleware
from shared.test_helpers import FakeCommerceBackend, ManualClock


def _build_app(router: EdgeRouter, redirect_status_code: int = 307) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        LocaleRoutingMiddleware,
        router=router,
        bypass_prefixes=["/health", "/api/"],
        redirect_status_code=redirect_status_code,
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/{full_path:path}")
    async def page(full_path: str, request: Request):
        region = getattr(request.state, "region", None)
        return {
            "path": full_path,
            "locale": getattr(request.state, "locale", None),
            "region_id": region.id if region else None,
        }

    return app


class TestLocaleRoutingMiddleware:
    """Test cases for LocaleRoutingMiddleware."""

    @pytest.fixture
    def backend(self):
        return FakeCommerceBackend()

    @pytest.fixture
    def router(self, backend):
        return EdgeRouter(RegionResolver(backend, clock=ManualClock()), default_locale="us")

    @pytest.fixture
    def client(self, router):
        return TestClient(_build_app(router))

    def test_pass_through_exposes_region(self, client):
        response = client.get("/de/products/shirt", follow_redirects=False)

        assert response.status_code == 200
        assert response.json() == {"path": "de/products/shirt", "locale": "de", "region_id": "reg_eu"}

    def test_redirect_preserves_path_and_query(self, client):
        response = client.get("/DE/products/shirt?size=m", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/de/products/shirt?size=m"

    def test_unknown_locale_redirects_to_default(self, client):
        response = client.get("/xx/cart", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/us/cart"

    def test_redirect_target_passes(self, client):
        """Following the redirect lands on a pass-through request."""
        response = client.get("/products/shirt")

        assert response.status_code == 200
        assert response.json()["locale"] == "us"

    def test_configuration_error_is_503(self, client, backend):
        backend.fail_regions = True

        response = client.get("/xx/cart", follow_redirects=False)

        assert response.status_code == 503
        assert response.headers["retry-after"] == "30"
        body = response.json()
        assert body["code"] == "CONFIGURATION_ERROR"
        assert body["details"]["reason"] == "backend_unavailable"

    def test_bypassed_paths_skip_routing(self, client, backend):
        backend.fail_regions = True

        assert client.get("/health").status_code == 200
        assert client.get("/favicon.ico", follow_redirects=False).status_code == 200
        assert backend.region_calls == 0

    def test_configured_redirect_status(self, router):
        client = TestClient(_build_app(router, redirect_status_code=308))

        response = client.get("/EN", follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"] == "/en"

    def test_should_bypass(self, router):
        middleware = LocaleRoutingMiddleware(FastAPI(), router, bypass_prefixes=["/api/", "/health"])

        assert middleware.should_bypass("/api/v1/regions")
        assert middleware.should_bypass("/api")
        assert middleware.should_bypass("/images/logo.png")
        assert not middleware.should_bypass("/us/products/shirt")
