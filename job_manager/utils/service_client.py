"""
Service Communication Helper with Correlation ID
Use this for making HTTP requests between the Job Manager services
with proper correlation ID propagation
"""

from typing import Any, Dict, Optional

import httpx

from job_manager.utils.correlation_id import create_headers_with_correlation_id


class ServiceClient:
    """HTTP client for inter-service communication with correlation ID support"""

    def __init__(self, base_url: str, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    def _get_headers(self, additional_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        return create_headers_with_correlation_id(additional_headers)

    async def get(self, endpoint: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> httpx.Response:
        """Make a GET request with correlation ID"""
        return await self._client.get(endpoint, headers=self._get_headers(headers), **kwargs)

    async def post(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> httpx.Response:
        """Make a POST request with correlation ID"""
        return await self._client.post(endpoint, json=data, headers=self._get_headers(headers), **kwargs)

    async def close(self) -> None:
        await self._client.aclose()
