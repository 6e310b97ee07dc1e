"""
Unit tests for StaticPathEnumerator.
"""

import asyncio

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_edge.app.static_paths.enumerator import StaticPathEnumerator
from service_edge.app.static_paths.models import ContentTypeSpec, IdentifierPage, RenderingMode
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig
from shared.test_helpers import FakeCommerceBackend


NO_WAIT_RETRY = RetryConfig(max_attempts=2, base_delay=0.0, jitter=False)


class TestStaticPathEnumerator:
    """Test cases for StaticPathEnumerator."""

    @pytest.fixture
    def backend(self):
        return FakeCommerceBackend(identifiers={
            "category": ["a", "b", "c"],
            "product": [f"product-{i:02d}" for i in range(1, 8)],
            "collection": [],
        })

    @pytest.fixture
    def enumerator(self, backend):
        return StaticPathEnumerator(backend, page_size=3, timeout_seconds=1.0, retry_config=NO_WAIT_RETRY)

    @pytest.mark.asyncio
    async def test_enumerate_keeps_backend_order(self, enumerator):
        """Identifiers come back complete and in backend order with mode STATIC."""
        result = await enumerator.enumerate("category")

        assert result.identifiers == ["a", "b", "c"]
        assert result.mode == RenderingMode.STATIC
        assert result.failure is None
        assert result.paths[0].params() == {"category": "a"}

    @pytest.mark.asyncio
    async def test_enumerate_paginates(self, enumerator, backend):
        """Pages are requested until the reported count is reached."""
        result = await enumerator.enumerate("product")

        assert result.identifiers == [f"product-{i:02d}" for i in range(1, 8)]
        offsets = [call["offset"] for call in backend.identifier_calls]
        assert offsets == [0, 3, 6]

    @pytest.mark.asyncio
    async def test_enumerate_stops_on_short_page_without_count(self, enumerator, backend):
        backend.report_count = False
        backend.identifiers["product"] = ["p1", "p2", "p3", "p4", "p5", "p6"]

        result = await enumerator.enumerate("product")

        assert result.identifiers == ["p1", "p2", "p3", "p4", "p5", "p6"]
        assert [call["offset"] for call in backend.identifier_calls] == [0, 3, 6]

    @pytest.mark.asyncio
    async def test_empty_catalog_is_static_and_empty(self, enumerator):
        """No identifiers is a valid result, distinct from a failure."""
        result = await enumerator.enumerate("collection")

        assert result.paths == ()
        assert result.mode == RenderingMode.STATIC
        assert result.failure is None

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_dynamic(self, backend):
        """A backend slower than the bound yields [] and DYNAMIC with one diagnostic."""
        backend.identifier_delay = 0.5
        enumerator = StaticPathEnumerator(backend, timeout_seconds=0.05, retry_config=NO_WAIT_RETRY)

        result = await enumerator.enumerate("category")

        assert result.paths == ()
        assert result.mode == RenderingMode.DYNAMIC
        assert result.failure is not None
        assert result.failure.content_type == "category"
        assert result.failure.details["reason"] == "timeout"

    @pytest.mark.asyncio
    async def test_partial_page_failure_discards_everything(self, enumerator, backend):
        """A failure on a later page never yields a partial sequence."""
        backend.fail_identifiers["product"] = 3

        result = await enumerator.enumerate("product")

        assert result.paths == ()
        assert result.mode == RenderingMode.DYNAMIC
        assert result.failure.details["attempts"] == 2
        assert result.failure.details["backend"]["status_code"] == 503

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, enumerator, backend):
        """One failed page attempt is retried within the bound."""
        original = backend.list_identifiers
        calls = {"n": 0}

        async def flaky(spec, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                backend.fail_identifiers[spec.name] = 0
            else:
                backend.fail_identifiers.pop(spec.name, None)
            return await original(spec, **kwargs)

        backend.list_identifiers = flaky

        result = await enumerator.enumerate("category")

        assert result.mode == RenderingMode.STATIC
        assert result.identifiers == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_unregistered_content_type_is_dynamic(self, enumerator):
        result = await enumerator.enumerate("blog-post")

        assert result.mode == RenderingMode.DYNAMIC
        assert "not registered" in result.failure.cause

    @pytest.mark.asyncio
    async def test_enumerate_is_idempotent(self, enumerator):
        """Two runs against an unchanged backend give the same sequence."""
        first = await enumerator.enumerate("product")
        second = await enumerator.enumerate("product")

        assert first.paths == second.paths
        assert first.mode == second.mode

    @pytest.mark.asyncio
    async def test_duplicates_across_pages_are_dropped(self, enumerator, backend):
        backend.identifiers["category"] = ["a", "b", "c", "c", "d"]

        result = await enumerator.enumerate("category")

        assert result.identifiers == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_non_terminating_pagination_fails(self, backend):
        """A backend that never reports the end is cut off by the page cap."""
        backend.report_count = False
        backend.identifiers["product"] = [f"p{i}" for i in range(100)]
        enumerator = StaticPathEnumerator(backend, page_size=2, max_pages=3, retry_config=NO_WAIT_RETRY)

        result = await enumerator.enumerate("product")

        assert result.mode == RenderingMode.DYNAMIC
        assert result.failure.details["reason"] == "pagination"

    @pytest.mark.asyncio
    async def test_backend_page_cap_does_not_truncate(self, backend):
        """A backend that returns fewer items than requested is paged until the reported count."""
        backend.identifiers["product"] = ["p1", "p2", "p3", "p4", "p5"]
        original = backend.list_identifiers

        async def capped(spec, *, offset=0, limit=100, **kwargs):
            return await original(spec, offset=offset, limit=min(limit, 2), **kwargs)

        backend.list_identifiers = capped
        enumerator = StaticPathEnumerator(backend, page_size=100, retry_config=NO_WAIT_RETRY)

        result = await enumerator.enumerate("product")

        assert result.mode == RenderingMode.STATIC
        assert result.identifiers == ["p1", "p2", "p3", "p4", "p5"]
        assert [call["offset"] for call in backend.identifier_calls] == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_empty_page_before_count_fails(self, enumerator, backend):
        """An empty page while the reported count is still ahead is never a complete listing."""
        backend.identifiers["product"] = ["p1", "p2", "p3", "p4", "p5"]
        original = backend.list_identifiers

        async def vanishing(spec, *, offset=0, **kwargs):
            page = await original(spec, offset=offset, **kwargs)
            if offset >= 3:
                return IdentifierPage(identifiers=[], count=page.count)
            return page

        backend.list_identifiers = vanishing

        result = await enumerator.enumerate("product")

        assert result.paths == ()
        assert result.mode == RenderingMode.DYNAMIC
        assert result.failure.details["reason"] == "pagination"
        assert result.failure.details["offset"] == 3
        assert result.failure.details["count"] == 5

    @pytest.mark.asyncio
    async def test_registered_content_type(self, enumerator, backend):
        enumerator.register(ContentTypeSpec("brand", "/store/brands", "brands"))
        backend.identifiers["brand"] = ["acme"]

        result = await enumerator.enumerate("brand")

        assert result.identifiers == ["acme"]

    @pytest.mark.asyncio
    async def test_enumerate_all_isolates_failures(self, enumerator, backend):
        """One failing content type does not affect the others."""
        backend.fail_identifiers["product"] = 0

        manifest = await enumerator.enumerate_all()

        assert manifest.summary() == {"category": "static", "product": "dynamic", "collection": "static"}
        assert len(manifest.diagnostics) == 1
        assert manifest.diagnostics[0].content_type == "product"

    @pytest.mark.asyncio
    async def test_enumerate_all_with_locales(self, enumerator):
        manifest = await enumerator.enumerate_all(["category"], expand_locales=True)

        assert manifest.locales == ["us", "de", "fr", "en"]
        params = manifest.static_params_for("category")
        assert params[:3] == [
            {"locale": "us", "category": "a"},
            {"locale": "us", "category": "b"},
            {"locale": "us", "category": "c"},
        ]
        assert len(params) == 12

    @pytest.mark.asyncio
    async def test_enumerate_all_region_failure_marks_dynamic(self, enumerator, backend):
        backend.fail_regions = True

        manifest = await enumerator.enumerate_all(["category", "product"], expand_locales=True)

        assert manifest.dynamic_content_types == ["category", "product"]
        assert backend.identifier_calls == []

    @pytest.mark.asyncio
    async def test_enumeration_metrics(self, backend):
        metrics = MetricsCollector("edge")
        backend.fail_identifiers["product"] = 0
        enumerator = StaticPathEnumerator(backend, metrics=metrics, retry_config=NO_WAIT_RETRY)

        await enumerator.enumerate("category")
        await enumerator.enumerate("product")

        registry = metrics.registry
        assert registry.get_sample_value(
            "static_path_enumerations_total", {"content_type": "category", "mode": "static"}
        ) == 1
        assert registry.get_sample_value(
            "static_path_enumerations_total", {"content_type": "product", "mode": "dynamic"}
        ) == 1

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, backend):
        """Cancelling the build step is not swallowed as an enumeration failure."""
        backend.identifier_delay = 5
        enumerator = StaticPathEnumerator(backend, timeout_seconds=10, retry_config=NO_WAIT_RETRY)

        task = asyncio.create_task(enumerator.enumerate("category"))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    def test_page_size_must_be_positive(self, backend):
        with pytest.raises(ValueError):
            StaticPathEnumerator(backend, page_size=0)
