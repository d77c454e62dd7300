"""
Correlation ID utilities for distributed tracing
Shared across the API, the event consumers and the event producers
"""

import uuid
from contextvars import ContextVar
from typing import Dict, Optional

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Context variable to store correlation ID across async operations
correlation_id_context: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get the current correlation ID from context
    Generates a new one if none exists

    Returns:
        str: Current correlation ID
    """
    correlation_id = correlation_id_context.get("")
    if not correlation_id:
        correlation_id = create_correlation_id()
        correlation_id_context.set(correlation_id)
    return correlation_id


def get_current_correlation_id() -> Optional[str]:
    """Return the correlation ID bound to the context, or None. Never generates one."""
    return correlation_id_context.get("") or None


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID in context

    Args:
        correlation_id: The correlation ID to set
    """
    correlation_id_context.set(correlation_id)


def create_correlation_id() -> str:
    """
    Create a new correlation ID

    Returns:
        str: New UUID-based correlation ID
    """
    return str(uuid.uuid4())


def create_headers_with_correlation_id(
    additional_headers: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """
    Create headers with correlation ID for outgoing requests

    Args:
        additional_headers: Optional additional headers to include

    Returns:
        dict: Headers dictionary with correlation ID
    """
    headers = {
        CORRELATION_ID_HEADER: get_correlation_id(),
        "Content-Type": "application/json",
    }

    if additional_headers:
        headers.update(additional_headers)

    return headers


def extract_correlation_id_from_headers(headers: Dict[str, str]) -> str:
    """
    Extract correlation ID from request headers
    Generates new one if not present

    Args:
        headers: Request headers dictionary

    Returns:
        str: Correlation ID from headers or newly generated
    """
    correlation_id = (
        headers.get("x-correlation-id")
        or headers.get(CORRELATION_ID_HEADER)
        or headers.get("X-CORRELATION-ID")
    )

    if not correlation_id:
        correlation_id = create_correlation_id()

    return correlation_id
