"""
Core utilities package.

- config: environment-driven settings
- logger: Structured logging with correlation IDs
- errors: Custom exception classes and handlers
"""

from .errors import (
    ErrorResponse,
    ErrorResponseModel,
    EventPublishError,
    error_response_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .logger import logger

__all__ = [
    "ErrorResponse",
    "ErrorResponseModel",
    "EventPublishError",
    "error_response_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "logger",
]
