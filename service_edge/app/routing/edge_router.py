"""
Per-request locale routing decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Tuple

from shared.errors import BackendUnavailableError, ConfigurationError
from shared.logging import get_logger

from ..regions.locale import is_locale_token, looks_like_locale, normalize_locale_code
from ..regions.models import Region

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..regions.resolver import RegionResolver
    from shared.metrics import MetricsCollector


class RoutingAction(str, Enum):
    """Terminal states of the routing state machine."""
    PASS_THROUGH = "pass_through"
    REDIRECT = "redirect"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True)
class RoutingDecision:
    """What the edge does with one request."""
    action: RoutingAction
    locale: Optional[str] = None
    region: Optional[Region] = None
    location: Optional[str] = None
    error: Optional[ConfigurationError] = None
    reason: Optional[str] = None


def split_locale_segment(path: str) -> Tuple[Optional[str], str]:
    """Split ``/en/products/x`` into ``("en", "/products/x")``.

    A first segment that is not locale-shaped is not a candidate: the whole
    path is returned as the remainder.
    """
    stripped = path.lstrip("/")
    if not stripped:
        return None, ""

    segment, slash, rest = stripped.partition("/")
    if not looks_like_locale(segment):
        return None, "/" + stripped
    return segment, (slash + rest)


class EdgeRouter:
    """Decide pass-through, redirect or configuration error for a request path.

    An unresolved first segment that reads as a locale (``/xx/cart``) is
    replaced by the fallback locale; one that reads as a page (``/faq``) is
    kept and the fallback locale is prefixed. ``locale_tokens`` names extra
    segments to treat as locales.

    A router built without a resolver (no backend address configured) answers
    every request with a configuration error.
    """

    def __init__(
        self,
        resolver: Optional["RegionResolver"],
        *,
        default_locale: Optional[str] = None,
        geo_header: Optional[str] = None,
        locale_tokens: Optional[Iterable[str]] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.resolver = resolver
        self.default_locale = default_locale
        self.geo_header = geo_header.lower() if geo_header else None
        self.locale_tokens = frozenset(
            filter(None, (normalize_locale_code(token) for token in locale_tokens or ()))
        )
        self.metrics = metrics
        self.logger = get_logger("edge.router")

    async def route(
        self,
        path: str,
        query: str = "",
        headers: Optional[Mapping[str, str]] = None,
    ) -> RoutingDecision:
        decision = await self._decide(path, query, headers or {})
        if self.metrics:
            self.metrics.increment_counter("routing_decisions_total", action=decision.action.value)
        if decision.action == RoutingAction.CONFIGURATION_ERROR:
            self.logger.error("Routing configuration error", path=path, reason=decision.reason)
        else:
            self.logger.debug(
                "Routing decision",
                path=path,
                action=decision.action.value,
                locale=decision.locale,
                location=decision.location,
            )
        return decision

    async def _decide(self, path: str, query: str, headers: Mapping[str, str]) -> RoutingDecision:
        if self.resolver is None:
            return self._configuration_error(
                "Backend address is not configured",
                reason="backend_url_missing",
            )

        candidate, rest = split_locale_segment(path)

        try:
            if candidate is not None:
                region = await self.resolver.resolve(candidate)
                if region is not None:
                    canonical = self.resolver.normalize(candidate)
                    if candidate == canonical:
                        return RoutingDecision(RoutingAction.PASS_THROUGH, locale=canonical, region=region)
                    return self._redirect(canonical, region, rest, query, reason="non_canonical")
                if not is_locale_token(candidate, self.locale_tokens):
                    # "/faq" is a page, not a locale: keep it behind the fallback prefix.
                    rest = "/" + path.lstrip("/")

            for fallback, reason in self._fallback_candidates(headers):
                region = await self.resolver.resolve(fallback)
                if region is not None:
                    return self._redirect(self.resolver.normalize(fallback), region, rest, query, reason=reason)
        except BackendUnavailableError as exc:
            return self._configuration_error(
                "Region data unavailable and no cached regions exist",
                reason="backend_unavailable",
                details={"backend": exc.details},
            )

        if not self.default_locale:
            return self._configuration_error(
                "Locale not resolvable and no default locale is configured",
                reason="default_locale_missing",
                details={"candidate": candidate},
            )
        return self._configuration_error(
            f"Default locale '{self.default_locale}' is not served by any region",
            reason="default_locale_unresolvable",
            details={"candidate": candidate, "default_locale": self.default_locale},
        )

    def _fallback_candidates(self, headers: Mapping[str, str]):
        if self.geo_header:
            hinted = _header(headers, self.geo_header)
            if hinted and looks_like_locale(hinted.strip()):
                yield hinted.strip(), "geo_header"
        if self.default_locale:
            yield self.default_locale, "default_locale"

    def _redirect(self, canonical: str, region: Region, rest: str, query: str, *, reason: str) -> RoutingDecision:
        location = f"/{canonical}{rest}"
        if query:
            location = f"{location}?{query}"
        return RoutingDecision(
            RoutingAction.REDIRECT,
            locale=canonical,
            region=region,
            location=location,
            reason=reason,
        )

    def _configuration_error(self, message: str, *, reason: str, details: Optional[dict] = None) -> RoutingDecision:
        error = ConfigurationError(message, details={"reason": reason, **(details or {})})
        return RoutingDecision(RoutingAction.CONFIGURATION_ERROR, error=error, reason=reason)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value
