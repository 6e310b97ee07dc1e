"""
Mock commerce backend exposing the store endpoints the edge layer consumes.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from shared.logging import get_logger


@dataclass
class MockFailure:
    """Scripted failure for one endpoint."""
    status_code: int = 503
    delay_seconds: float = 0.0
    after_offset: Optional[int] = None  # only fail pages at or beyond this offset


@dataclass
class MockCatalog:
    """In-memory catalog of one content type."""
    collection_key: str
    items: List[Dict[str, Any]] = field(default_factory=list)


class MockCommerceServer:
    """Mock commerce backend implementation."""

    def __init__(self, port: int = 9000):
        self.port = port
        self.logger = get_logger("mock.commerce")
        self.app = FastAPI(title="Mock Commerce Backend", version="1.0.0")

        self.regions: List[Dict[str, Any]] = []
        self.catalogs: Dict[str, MockCatalog] = {}
        self.failures: Dict[str, MockFailure] = {}
        self.request_counts: Dict[str, int] = {}

        self._create_default_data()
        self._setup_routes()

    def _create_default_data(self):
        """Create default regions and catalog entries."""
        self.regions = [
            {
                "id": "reg_us",
                "name": "United States",
                "currency_code": "usd",
                "countries": [{"iso_2": "us"}],
                "metadata": {"storefront": "na"},
            },
            {
                "id": "reg_eu",
                "name": "Europe",
                "currency_code": "eur",
                "countries": [{"iso_2": "de"}, {"iso_2": "fr"}],
                "metadata": {},
            },
            {
                "id": "reg_intl",
                "name": "International",
                "currency_code": "usd",
                "locales": ["en"],
            },
        ]
        self.catalogs = {
            "/store/product-categories": MockCatalog(
                "product_categories",
                [{"handle": h} for h in ("shirts", "sweatshirts", "pants", "merch")],
            ),
            "/store/products": MockCatalog(
                "products",
                [{"handle": f"product-{i:03d}"} for i in range(1, 26)],
            ),
            "/store/collections": MockCatalog(
                "collections",
                [{"handle": h} for h in ("summer", "winter")],
            ),
        }

    def fail(self, path: str, status_code: int = 503, *, delay_seconds: float = 0.0, after_offset: Optional[int] = None):
        """Make an endpoint fail until ``recover`` is called."""
        self.failures[path] = MockFailure(status_code, delay_seconds, after_offset)

    def recover(self, path: Optional[str] = None):
        """Clear scripted failures for one endpoint, or all of them."""
        if path is None:
            self.failures.clear()
        else:
            self.failures.pop(path, None)

    async def _maybe_fail(self, path: str, offset: int = 0):
        self.request_counts[path] = self.request_counts.get(path, 0) + 1
        failure = self.failures.get(path)
        if failure is None:
            return
        if failure.after_offset is not None and offset < failure.after_offset:
            return
        if failure.delay_seconds:
            await asyncio.sleep(failure.delay_seconds)
        self.logger.info("Scripted failure", path=path, status_code=failure.status_code)
        raise HTTPException(status_code=failure.status_code, detail="scripted failure")

    def _setup_routes(self):
        """Set up API routes."""

        @self.app.get("/health")
        async def health():
            return {"status": "ok"}

        @self.app.get("/store/regions")
        async def list_regions():
            await self._maybe_fail("/store/regions")
            return {"regions": self.regions, "count": len(self.regions)}

        for path in list(self.catalogs):
            self._add_list_route(path)

    def _add_list_route(self, path: str):
        async def list_items(
            limit: int = Query(50, ge=1, le=1000),
            offset: int = Query(0, ge=0),
            fields: Optional[str] = Query(None),
        ):
            await self._maybe_fail(path, offset)
            catalog = self.catalogs[path]
            page = catalog.items[offset:offset + limit]
            if fields:
                wanted = [f.strip() for f in fields.split(",") if f.strip()]
                page = [{k: v for k, v in item.items() if k in wanted} for item in page]
            return JSONResponse({
                catalog.collection_key: page,
                "count": len(catalog.items),
                "offset": offset,
                "limit": limit,
            })

        self.app.add_api_route(path, list_items, methods=["GET"])


def create_mock_server(port: int = 9000) -> MockCommerceServer:
    """Create mock commerce server instance."""
    return MockCommerceServer(port)


if __name__ == "__main__":
    import uvicorn

    server = create_mock_server()
    uvicorn.run(server.app, host="0.0.0.0", port=server.port)
