"""
Tests for request-scoped logging context.
"""

import structlog

from medocare.utils.logger import bind_request_context, clear_request_context


class TestRequestContext:
    """Binding and clearing request fields."""

    def test_bind_sets_fields(self):
        """Request id, method and path are bound for later events."""
        request_id = bind_request_context("POST", "/upload", request_id="req-1")
        try:
            assert request_id == "req-1"
            assert structlog.contextvars.get_contextvars() == {
                "request_id": "req-1",
                "method": "POST",
                "path": "/upload",
            }
        finally:
            clear_request_context()

    def test_bind_generates_id(self):
        """Without a caller id a new one is generated."""
        try:
            first = bind_request_context("GET", "/health")
            second = bind_request_context("GET", "/health")
            assert first != second
        finally:
            clear_request_context()

    def test_bind_replaces_previous_request(self):
        """Fields from an earlier request never leak into the next."""
        try:
            structlog.contextvars.bind_contextvars(stale="yes")
            bind_request_context("GET", "/health", request_id="req-2")
            assert "stale" not in structlog.contextvars.get_contextvars()
        finally:
            clear_request_context()

    def test_clear(self):
        """Clearing leaves no request fields behind."""
        bind_request_context("GET", "/health")
        clear_request_context()
        assert structlog.contextvars.get_contextvars() == {}
