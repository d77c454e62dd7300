"""Tests for error handling"""
import json

import pytest
from unittest.mock import Mock, patch
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from job_manager.core.errors import (
    ErrorResponse,
    EventPublishError,
    error_response_handler,
    http_exception_handler,
    validation_exception_handler,
)


class TestErrorResponse:
    """Test ErrorResponse exception class"""

    def test_error_response_creation(self):
        error = ErrorResponse("Something went wrong", status_code=400)
        assert error.message == "Something went wrong"
        assert error.status_code == 400
        assert error.details == {}

    def test_error_response_with_details(self):
        details = {"companyId": "123"}
        error = ErrorResponse("Company not found", status_code=404, details=details)
        assert error.details == details

    def test_error_response_default_status_code(self):
        assert ErrorResponse("Bad request").status_code == 400

    def test_error_response_str(self):
        assert str(ErrorResponse("Test error")) == "Test error"


class TestEventPublishError:

    def test_carries_topic_and_attempts(self):
        error = EventPublishError("gave up", topic="company.registered", attempts=5)

        assert error.topic == "company.registered"
        assert error.attempts == 5
        assert error.envelope == {}
        assert str(error) == "gave up"


class TestErrorHandlers:
    """Test error handler functions"""

    @pytest.mark.asyncio
    async def test_error_response_handler(self):
        error = ErrorResponse("Company not found", status_code=404, details={"companyId": "123"})

        with patch('job_manager.core.errors.logger') as mock_logger:
            response = await error_response_handler(Mock(), error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Company not found", "details": {"companyId": "123"}}
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_server_errors_logged_as_errors(self):
        error = ErrorResponse("Database down", status_code=503)

        with patch('job_manager.core.errors.logger') as mock_logger:
            response = await error_response_handler(Mock(), error)

        assert response.status_code == 503
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_http_exception_handler(self):
        exception = HTTPException(status_code=405, detail="Method Not Allowed")

        with patch('job_manager.core.errors.logger'):
            response = await http_exception_handler(Mock(), exception)

        assert response.status_code == 405
        assert json.loads(response.body) == {"error": "Method Not Allowed"}

    @pytest.mark.asyncio
    async def test_validation_exception_handler(self):
        exception = RequestValidationError([
            {"loc": ("body", "email"), "msg": "Email must be a valid email address", "type": "value_error"}
        ])

        with patch('job_manager.core.errors.logger'):
            response = await validation_exception_handler(Mock(), exception)

        body = json.loads(response.body)
        assert response.status_code == 422
        assert body["error"] == "Validation failed"
        assert body["details"]["errors"][0]["loc"] == ["body", "email"]
