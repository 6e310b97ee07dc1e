"""
Unit tests for the structured logging context.
"""

import asyncio

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_edge.app.static_paths.enumerator import StaticPathEnumerator
from shared.logging import (
    add_correlation_context,
    clear_context,
    content_type_var,
    enumeration_context,
    set_request_id,
    set_routing_context,
)
from shared.retry import RetryConfig
from shared.test_helpers import FakeCommerceBackend


class TestCorrelationContext:
    """Test cases for the correlation processor."""

    @pytest.fixture(autouse=True)
    def reset(self):
        clear_context()
        yield
        clear_context()

    def test_routing_context_is_added(self):
        set_request_id("req-1")
        set_routing_context("de", "reg_eu")

        event = add_correlation_context(None, "info", {"event": "Request completed"})

        assert event["request_id"] == "req-1"
        assert event["locale"] == "de"
        assert event["region_id"] == "reg_eu"
        assert "content_type" not in event

    def test_enumeration_context_is_scoped(self):
        with enumeration_context("product"):
            inside = add_correlation_context(None, "info", {"event": "Page fetched"})
        outside = add_correlation_context(None, "info", {"event": "Build finished"})

        assert inside["content_type"] == "product"
        assert "content_type" not in outside

    def test_explicit_field_wins(self):
        with enumeration_context("product"):
            event = add_correlation_context(None, "warning", {"event": "x", "content_type": "category"})

        assert event["content_type"] == "category"

    def test_clear_context(self):
        set_routing_context("us", "reg_us")
        content_type_var.set("category")

        clear_context()
        event = add_correlation_context(None, "info", {"event": "x"})

        assert event == {"event": "x"}

    @pytest.mark.asyncio
    async def test_backend_calls_see_the_content_type(self):
        """Page fetches run in their own task and still carry the content type."""
        backend = FakeCommerceBackend(identifiers={"category": ["a", "b"], "product": ["p1"]})
        original = backend.list_identifiers
        seen = []

        async def recording(spec, **kwargs):
            seen.append((spec.name, content_type_var.get()))
            return await original(spec, **kwargs)

        backend.list_identifiers = recording
        enumerator = StaticPathEnumerator(backend, retry_config=RetryConfig(max_attempts=1, base_delay=0.0, jitter=False))

        await enumerator.enumerate("category")
        await enumerator.enumerate("product")

        assert seen == [("category", "category"), ("product", "product")]
        assert content_type_var.get() is None

    @pytest.mark.asyncio
    async def test_tasks_inherit_the_binding(self):
        async def read():
            return content_type_var.get()

        with enumeration_context("collection"):
            value = await asyncio.create_task(read())

        assert value == "collection"
