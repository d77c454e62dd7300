"""Unit tests for the correlation ID middleware and helpers"""
import pytest
from unittest.mock import Mock

from job_manager.middlewares.correlation_id import CorrelationIdMiddleware
from job_manager.utils.correlation_id import (
    create_headers_with_correlation_id,
    extract_correlation_id_from_headers,
    get_correlation_id,
    get_current_correlation_id,
    set_correlation_id,
)


class MockRequest:
    def __init__(self, headers):
        self.headers = headers


class TestCorrelationIdMiddleware:

    @pytest.mark.asyncio
    async def test_correlation_id_from_header(self):
        # Arrange
        middleware = CorrelationIdMiddleware(Mock())
        request = MockRequest({"x-correlation-id": "test-correlation-123"})
        captured = {}

        async def call_next(req):
            captured["id"] = get_current_correlation_id()
            response = Mock()
            response.headers = {}
            return response

        # Act
        response = await middleware.dispatch(request, call_next)

        # Assert
        assert captured["id"] == "test-correlation-123"
        assert response.headers["X-Correlation-ID"] == "test-correlation-123"

    @pytest.mark.asyncio
    async def test_correlation_id_generated(self):
        # Arrange
        middleware = CorrelationIdMiddleware(Mock())
        captured = {}

        async def call_next(req):
            captured["id"] = get_current_correlation_id()
            response = Mock()
            response.headers = {}
            return response

        # Act
        response = await middleware.dispatch(MockRequest({}), call_next)

        # Assert
        assert captured["id"]
        assert response.headers["X-Correlation-ID"] == captured["id"]


class TestCorrelationIdHelpers:

    def test_extract_generates_when_missing(self):
        assert extract_correlation_id_from_headers({}) != extract_correlation_id_from_headers({})

    def test_extract_prefers_header(self):
        assert extract_correlation_id_from_headers({"X-Correlation-ID": "abc"}) == "abc"

    def test_outgoing_headers_carry_current_id(self):
        set_correlation_id("outgoing-1")

        headers = create_headers_with_correlation_id({"Accept": "application/json"})

        assert headers["X-Correlation-ID"] == "outgoing-1"
        assert headers["Accept"] == "application/json"

    def test_get_correlation_id_generates_once(self):
        set_correlation_id("")

        first = get_correlation_id()

        assert first
        assert get_correlation_id() == first
