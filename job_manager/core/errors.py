"""
Error handling utilities for the HTTP APIs and the event pipeline
"""

import traceback
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from job_manager.core.logger import IS_DEVELOPMENT, logger


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class EventPublishError(Exception):
    """Raised when an event could not be delivered within the retry budget"""

    def __init__(self, message: str, topic: str, envelope: Optional[dict] = None,
                 attempts: int = 0):
        self.topic = topic
        self.envelope = envelope or {}
        self.attempts = attempts
        super().__init__(message)


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if IS_DEVELOPMENT:
        metadata["traceback"] = traceback.format_exc()

    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"Error: {exc.message}", metadata=metadata)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.error(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request body/parameter validation failures"""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Request validation failed",
        metadata={
            "event": "validation_error",
            "url": str(request.url),
            "method": request.method,
            "errors": errors,
        }
    )

    return JSONResponse(
        status_code=422,
        content={"error": "Validation failed", "details": {"errors": errors}}
    )
