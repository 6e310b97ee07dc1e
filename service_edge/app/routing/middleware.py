"""
Starlette middleware that puts every storefront request through the edge router.
"""

from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.types import ASGIApp

from shared.logging import get_logger, set_routing_context

from .edge_router import EdgeRouter, RoutingAction

RETRY_AFTER_SECONDS = "30"


class LocaleRoutingMiddleware(BaseHTTPMiddleware):
    """Gate requests on a valid locale/region before content handling.

    Pass-through requests carry ``request.state.locale`` and
    ``request.state.region`` downstream.
    """

    def __init__(
        self,
        app: ASGIApp,
        router: EdgeRouter,
        *,
        bypass_prefixes: Optional[Iterable[str]] = None,
        redirect_status_code: int = 307,
    ):
        super().__init__(app)
        self.router = router
        self.bypass_prefixes = tuple(bypass_prefixes or ())
        self.redirect_status_code = redirect_status_code
        self.logger = get_logger("edge.routing_middleware")

    def should_bypass(self, path: str) -> bool:
        if any(path == prefix.rstrip("/") or path.startswith(prefix) for prefix in self.bypass_prefixes):
            return True
        # Static assets such as /favicon.ico or /images/logo.png
        last_segment = path.rsplit("/", 1)[-1]
        return "." in last_segment

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if self.should_bypass(path):
            return await call_next(request)

        decision = await self.router.route(path, request.url.query, request.headers)

        if decision.action == RoutingAction.PASS_THROUGH:
            request.state.locale = decision.locale
            request.state.region = decision.region
            set_routing_context(decision.locale, decision.region.id if decision.region else None)
            return await call_next(request)

        if decision.action == RoutingAction.REDIRECT:
            self.logger.info(
                "Redirecting to locale-prefixed path",
                path=path,
                location=decision.location,
                reason=decision.reason,
            )
            return RedirectResponse(decision.location, status_code=self.redirect_status_code)

        error = decision.error
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_response().model_dump(),
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
