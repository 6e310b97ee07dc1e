"""
Region resolver with a time-bounded, single-flight refreshed cache.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

from shared.errors import BackendUnavailableError
from shared.logging import get_logger

from .locale import normalize_locale_code
from .models import Region, RegionSnapshot

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.backend_client import CommerceBackendClient
    from shared.metrics import MetricsCollector


DEFAULT_TTL_SECONDS = 3600.0


class RegionResolver:
    """Answers "which region serves this locale code" from an in-memory snapshot.

    The snapshot is refreshed when it is empty or older than ``ttl_seconds``.
    Refreshes are single-flight: at most one backend fetch is in flight, and
    every caller that finds the cache stale awaits that same task, so all of
    them see the same snapshot or the same exception. Waiters are shielded:
    cancelling one caller never cancels the shared refresh.

    A failed refresh leaves the previous snapshot and its timestamp alone, so
    the next call retries. Callers get the stale snapshot in the meantime; only
    when nothing was ever fetched does ``resolve`` raise
    ``BackendUnavailableError``.
    """

    def __init__(
        self,
        backend: "CommerceBackendClient",
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        fetch_timeout: Optional[float] = None,
        aliases: Optional[Mapping[str, str]] = None,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self.fetch_timeout = fetch_timeout
        self.metrics = metrics
        self.logger = get_logger("edge.region_resolver")
        self._clock = clock
        self._aliases: Dict[str, str] = {}
        for alias, target in (aliases or {}).items():
            alias_code = normalize_locale_code(alias)
            target_code = normalize_locale_code(target)
            if alias_code and target_code:
                self._aliases[alias_code] = target_code

        self._snapshot = RegionSnapshot.empty()
        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_count = 0

    @property
    def snapshot(self) -> RegionSnapshot:
        return self._snapshot

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None

    def normalize(self, locale_code: Optional[str]) -> Optional[str]:
        """Map any spelling or alias of a locale code to its canonical form."""
        code = normalize_locale_code(locale_code)
        if code is None:
            return None
        return self._aliases.get(code, code)

    def is_stale(self) -> bool:
        snapshot = self._snapshot
        if not snapshot.is_populated:
            return True
        return self._clock() - snapshot.refreshed_at > self.ttl_seconds

    def cache_status(self) -> str:
        if not self._snapshot.is_populated:
            return "empty"
        return "stale" if self.is_stale() else "fresh"

    async def resolve(self, locale_code: Optional[str]) -> Optional[Region]:
        """Return the region serving ``locale_code``, or None if no region does.

        Raises ``BackendUnavailableError`` only if the cache has never been
        populated and the refresh failed.
        """
        code = self.normalize(locale_code)

        if self.is_stale():
            await self._refresh_for_lookup()

        region = self._snapshot.get(code)
        self._record_lookup("hit" if region is not None else "not_found")
        return region

    async def refresh(self) -> RegionSnapshot:
        """Refresh the snapshot now, joining a refresh that is already in flight."""
        task = self._refresh_task
        if task is None:
            task = asyncio.get_running_loop().create_task(self._fetch_snapshot())
            self._refresh_task = task
            task.add_done_callback(self._refresh_done)
        return await asyncio.shield(task)

    async def warmup(self) -> None:
        """Eagerly load regions so the first request does not pay the cost."""
        try:
            await self.refresh()
        except BackendUnavailableError as exc:
            self.logger.warning("Region cache warmup failed", error=exc.message, details=exc.details)

    def describe(self) -> Dict[str, Any]:
        """Summarize the current snapshot without triggering a refresh."""
        snapshot = self._snapshot
        age = snapshot.age(self._clock())
        return {
            "status": self.cache_status(),
            "ttl_seconds": self.ttl_seconds,
            "age_seconds": round(age, 3) if age is not None else None,
            "refreshed_at": snapshot.refreshed_at_wall.isoformat() if snapshot.refreshed_at_wall else None,
            "refresh_count": self._refresh_count,
            "refresh_in_flight": self.refresh_in_flight,
            "locales": {code: region.id for code, region in snapshot.regions.items()},
            "regions": [region.to_dict() for region in snapshot.unique_regions()],
        }

    async def _refresh_for_lookup(self) -> None:
        try:
            await self.refresh()
        except BackendUnavailableError as exc:
            if not self._snapshot.is_populated:
                raise
            self._record_lookup("stale")
            self.logger.warning(
                "Region refresh failed; serving stale snapshot",
                error=exc.message,
                age_seconds=self._snapshot.age(self._clock()),
            )

    async def _fetch_snapshot(self) -> RegionSnapshot:
        started = time.perf_counter()
        try:
            regions = await self.backend.list_regions(timeout=self.fetch_timeout)
        except BackendUnavailableError as exc:
            self._record_refresh("error", time.perf_counter() - started)
            self.logger.error("Region refresh failed", error=exc.message, details=exc.details)
            raise

        snapshot = RegionSnapshot.build(
            regions,
            refreshed_at=self._clock(),
            refreshed_at_wall=datetime.now(timezone.utc),
        )
        self._snapshot = snapshot
        self._refresh_count += 1
        self._record_refresh("success", time.perf_counter() - started)
        if self.metrics:
            self.metrics.set_gauge("region_cache_locales", len(snapshot.regions))
        self.logger.info(
            "Region cache refreshed",
            regions=len(regions),
            locales=len(snapshot.regions),
        )
        return snapshot

    def _refresh_done(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Mark the exception retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    def _record_lookup(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("region_cache_lookups_total", result=result)

    def _record_refresh(self, status: str, duration: float) -> None:
        if self.metrics:
            self.metrics.increment_counter("region_cache_refresh_total", status=status)
            self.metrics.observe_histogram("region_cache_refresh_duration_seconds", duration, status=status)
