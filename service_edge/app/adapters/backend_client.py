"""
Commerce backend client for the edge service.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from shared.errors import BackendUnavailableError
from shared.logging import get_logger

from ..regions.locale import normalize_locale_code
from ..regions.models import Region
from ..static_paths.models import ContentTypeSpec, IdentifierPage
from .payloads import PagePayload, RegionListPayload, RegionPayload


class CommerceBackendClient:
    """Client for the commerce backend store API.

    Connection refused, timeouts, HTTP error statuses, an open circuit and
    malformed bodies all surface as ``BackendUnavailableError``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        publishable_key: Optional[str] = None,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = get_logger("edge.backend_client")
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            "commerce_backend",
            failure_threshold=3,
            recovery_timeout=10.0,
            failure_exceptions=(BackendUnavailableError,),
        )

        headers = {"Accept": "application/json"}
        if publishable_key:
            headers["x-publishable-api-key"] = publishable_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def list_regions(self, *, timeout: Optional[float] = None) -> List[Region]:
        """Fetch every region with its locale coverage."""
        body = await self._get_json("/store/regions", timeout=timeout)
        try:
            payload = RegionListPayload.model_validate(body)
        except ValidationError as exc:
            raise self._malformed("/store/regions", exc)

        regions = [self._to_region(item) for item in payload.regions]
        self.logger.debug("Regions fetched", count=len(regions))
        return regions

    async def list_identifiers(
        self,
        spec: ContentTypeSpec,
        *,
        offset: int = 0,
        limit: int = 100,
        timeout: Optional[float] = None,
    ) -> IdentifierPage:
        """Fetch one page of identifiers for a content type."""
        params = {"limit": limit, "offset": offset, "fields": spec.identifier_field}
        body = await self._get_json(spec.endpoint, params=params, timeout=timeout)

        items = body.get(spec.collection_key) if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise self._malformed(spec.endpoint, f"missing '{spec.collection_key}' array")

        identifiers: List[str] = []
        for item in items:
            value = item.get(spec.identifier_field) if isinstance(item, dict) else None
            if not isinstance(value, str) or not value:
                raise self._malformed(spec.endpoint, f"item without '{spec.identifier_field}'")
            identifiers.append(value)

        try:
            page = PagePayload.model_validate(body)
        except ValidationError as exc:
            raise self._malformed(spec.endpoint, exc)

        return IdentifierPage(identifiers=identifiers, count=page.count)

    async def check_health(self) -> str:
        """Return 'ok' if the regions endpoint answers, otherwise 'error'."""
        try:
            await self.list_regions()
            return "ok"
        except BackendUnavailableError as exc:
            self.logger.error("Backend health check failed", error=exc.message)
            return "error"

    async def _get_json(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """GET through the circuit breaker and map every failure to BackendUnavailableError."""

        async def _request():
            request_timeout = timeout if timeout is not None else self.timeout
            try:
                response = await self._client.get(path, params=params, timeout=request_timeout)
            except httpx.TimeoutException as exc:
                raise BackendUnavailableError(
                    f"Timed out calling {path}",
                    details={"path": path, "reason": "timeout", "timeout_seconds": request_timeout},
                ) from exc
            except httpx.HTTPError as exc:
                raise BackendUnavailableError(
                    f"Could not reach backend for {path}: {exc}",
                    details={"path": path, "reason": "connection", "error": str(exc)},
                ) from exc

            if response.status_code >= 400:
                self.logger.error(
                    "Backend request failed",
                    path=path,
                    params=params,
                    status_code=response.status_code,
                )
                raise BackendUnavailableError(
                    f"Backend returned {response.status_code} for {path}",
                    details={"path": path, "reason": "status", "status_code": response.status_code},
                )

            try:
                return response.json()
            except ValueError as exc:
                raise self._malformed(path, exc) from exc

        try:
            return await self.circuit_breaker.call(_request)
        except CircuitBreakerOpenError as exc:
            raise BackendUnavailableError(
                "Commerce backend circuit open",
                details={"path": path, "reason": "circuit_open", "retry_in_seconds": round(exc.retry_in, 2)},
            ) from exc

    def _malformed(self, path: str, error: Any) -> BackendUnavailableError:
        self.logger.error("Malformed backend payload", path=path, error=str(error))
        return BackendUnavailableError(
            f"Malformed response from {path}",
            details={"path": path, "reason": "malformed", "error": str(error)},
        )

    @staticmethod
    def _to_region(payload: RegionPayload) -> Region:
        raw_codes = [country.iso_2 for country in payload.countries] or payload.locales
        codes: List[str] = []
        for raw in raw_codes:
            code = normalize_locale_code(raw)
            if code and code not in codes:
                codes.append(code)

        return Region(
            id=payload.id,
            name=payload.name,
            locale_codes=tuple(codes),
            currency_code=payload.currency_code,
            metadata=MappingProxyType(dict(payload.metadata or {})),
        )
