"""
Build-time enumeration of static paths per content type.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from shared.errors import BackendUnavailableError, EnumerationFailure
from shared.logging import enumeration_context, get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception

from .manifest import RenderingManifest
from .models import (
    DEFAULT_CONTENT_TYPES,
    ContentTypeSpec,
    EnumerationResult,
    IdentifierPage,
    RenderingMode,
    StaticPath,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.backend_client import CommerceBackendClient
    from shared.metrics import MetricsCollector


DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_PAGE_SIZE = 100
MAX_PAGES = 1000


class StaticPathEnumerator:
    """Collects the identifiers to pre-render for each content type.

    Best effort and bounded: every content type either gets its complete,
    ordered identifier list with mode STATIC, or an empty list with mode
    DYNAMIC and a diagnostic. Nothing here raises to the build pipeline.
    """

    def __init__(
        self,
        backend: "CommerceBackendClient",
        *,
        content_types: Optional[Mapping[str, ContentTypeSpec]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry_config: Optional[RetryConfig] = None,
        max_pages: int = MAX_PAGES,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.backend = backend
        self.content_types: Dict[str, ContentTypeSpec] = dict(content_types or DEFAULT_CONTENT_TYPES)
        self.page_size = page_size
        self.timeout_seconds = timeout_seconds
        self.max_pages = max_pages
        self.metrics = metrics
        self.logger = get_logger("edge.static_paths")
        self._fetch_page = retry_on_exception(
            (BackendUnavailableError,),
            retry_config or RetryConfig(max_attempts=2, base_delay=0.25, max_delay=1.0),
        )(self._fetch_page_once)

    def register(self, spec: ContentTypeSpec) -> None:
        self.content_types[spec.name] = spec

    async def enumerate(self, content_type: str) -> EnumerationResult:
        """Enumerate one content type; failures come back as a DYNAMIC result."""
        with enumeration_context(content_type):
            return await self._enumerate(content_type)

    async def _enumerate(self, content_type: str) -> EnumerationResult:
        started = time.perf_counter()
        spec = self.content_types.get(content_type)

        try:
            if spec is None:
                raise EnumerationFailure(content_type, "content type is not registered")
            identifiers = await asyncio.wait_for(self._collect(spec), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            failure = EnumerationFailure(
                content_type,
                f"timed out after {self.timeout_seconds}s",
                details={"reason": "timeout"},
            )
            return self._failed(failure, time.perf_counter() - started)
        except EnumerationFailure as failure:
            return self._failed(failure, time.perf_counter() - started)
        except RetryError as exc:
            last = exc.last_exception
            details = getattr(last, "details", {})
            failure = EnumerationFailure(content_type, str(last), details={"backend": details, "attempts": exc.attempts})
            return self._failed(failure, time.perf_counter() - started)
        except Exception as exc:
            failure = EnumerationFailure(content_type, f"unexpected error: {exc}", details={"reason": type(exc).__name__})
            return self._failed(failure, time.perf_counter() - started)

        result = EnumerationResult(
            content_type=content_type,
            paths=tuple(StaticPath(identifier, spec.param_name) for identifier in identifiers),
            mode=RenderingMode.STATIC,
            duration_seconds=time.perf_counter() - started,
        )
        self._record(result)
        self.logger.info(
            "Static paths enumerated",
            count=len(result.paths),
            duration_ms=round(result.duration_seconds * 1000, 2),
        )
        return result

    async def enumerate_all(
        self,
        content_types: Optional[Iterable[str]] = None,
        *,
        expand_locales: bool = False,
    ) -> RenderingManifest:
        """Enumerate every requested content type and collect the build manifest.

        With ``expand_locales`` the served locale codes are fetched first so the
        renderer can pre-render each identifier once per locale; if that fetch
        fails every content type falls back to DYNAMIC.
        """
        names = list(content_types) if content_types is not None else list(self.content_types)
        locales: List[str] = []

        if expand_locales:
            try:
                regions = await asyncio.wait_for(self.backend.list_regions(), timeout=self.timeout_seconds)
            except (BackendUnavailableError, asyncio.TimeoutError) as exc:
                cause = exc.message if isinstance(exc, BackendUnavailableError) else "timed out listing regions"
                results = [
                    self._failed(EnumerationFailure(name, f"region list unavailable: {cause}"), 0.0)
                    for name in names
                ]
                return RenderingManifest.from_results(results, locales=[])
            for region in regions:
                for code in region.locale_codes:
                    if code not in locales:
                        locales.append(code)

        results = [await self.enumerate(name) for name in names]
        return RenderingManifest.from_results(results, locales=locales)

    async def _collect(self, spec: ContentTypeSpec) -> List[str]:
        identifiers: List[str] = []
        seen = set()
        offset = 0

        for _ in range(self.max_pages):
            page = await self._fetch_page(spec, offset)
            for identifier in page.identifiers:
                if identifier in seen:
                    self.logger.warning("Duplicate identifier skipped", identifier=identifier)
                    continue
                seen.add(identifier)
                identifiers.append(identifier)

            offset += len(page.identifiers)
            if page.count is not None:
                # The backend may cap the page below the requested limit; only
                # the reported total says when the listing is complete.
                if offset >= page.count:
                    return identifiers
                if not page.identifiers:
                    raise EnumerationFailure(
                        spec.name,
                        f"empty page at offset {offset} before reported count {page.count}",
                        details={"reason": "pagination", "offset": offset, "count": page.count},
                    )
            elif len(page.identifiers) < self.page_size:
                return identifiers

        raise EnumerationFailure(
            spec.name,
            f"pagination did not terminate within {self.max_pages} pages",
            details={"reason": "pagination"},
        )

    async def _fetch_page_once(self, spec: ContentTypeSpec, offset: int) -> IdentifierPage:
        return await self.backend.list_identifiers(spec, offset=offset, limit=self.page_size)

    def _failed(self, failure: EnumerationFailure, duration: float) -> EnumerationResult:
        result = EnumerationResult.failed(failure, duration)
        self._record(result)
        self.logger.warning(
            "Static path enumeration failed; content type falls back to dynamic rendering",
            content_type=failure.content_type,
            cause=failure.cause,
            details=failure.details,
        )
        return result

    def _record(self, result: EnumerationResult) -> None:
        if self.metrics:
            self.metrics.increment_counter(
                "static_path_enumerations_total",
                content_type=result.content_type,
                mode=result.mode.value,
            )
            self.metrics.observe_histogram(
                "static_path_enumeration_duration_seconds",
                result.duration_seconds,
                content_type=result.content_type,
            )
