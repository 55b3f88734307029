from __future__ import annotations

"""Generic Async HTTP Client for Upstream Toolkits
==================================================

A reusable HTTP client shared by the upstream toolkits. Supports multiple
named base URLs, custom headers, timeouts, and proper resource management.

Each call issues exactly one request. Retry policy belongs to the caller
(see ``bnbpulse.metrics.base.Metric``), so a failure surfaces immediately as:

- ``TransportError``: non-2xx status or network failure
- ``UpstreamProtocolError``: the body is not valid JSON

Error messages carry the endpoint name, never the URL, because several
providers embed API keys in the URL path or query string.
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from bnbpulse.exceptions import TransportError, UpstreamProtocolError

__all__ = ["DataHTTPClient"]


class DataHTTPClient:
    """Generic async HTTP client for toolkit operations.

    Example:
        ```python
        client = DataHTTPClient()
        await client.add_endpoint("binance_spot", "https://api.binance.com")
        response = await client.get("binance_spot", "/api/v3/ticker/price",
                                    params={"symbol": "BNBUSDT"})
        ```
    """

    def __init__(
        self,
        default_timeout: float = 10.0,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """Initialize the HTTP client.

        Args:
            default_timeout: Default timeout for all requests in seconds
            default_headers: Default headers applied to all requests
        """
        self._default_timeout = default_timeout
        self._default_headers = default_headers or {}

        # Store endpoint configurations
        self._endpoints: Dict[str, Dict[str, Any]] = {}

        # Store active HTTP clients per endpoint
        self._clients: Dict[str, httpx.AsyncClient] = {}

    async def add_endpoint(
        self,
        name: str,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        **client_kwargs: Any,
    ) -> None:
        """Add a new endpoint configuration.

        Args:
            name: Unique identifier for this endpoint
            base_url: Base URL for the endpoint
            headers: Additional headers specific to this endpoint
            timeout: Custom timeout for this endpoint (overrides default)
            **client_kwargs: Additional arguments passed to httpx.AsyncClient
                (tests pass ``transport=httpx.MockTransport(...)``)
        """
        if name in self._endpoints:
            logger.warning(f"Endpoint '{name}' already exists, updating configuration")
            if name in self._clients:
                await self._clients[name].aclose()
                del self._clients[name]

        endpoint_headers = {**self._default_headers}
        if headers:
            endpoint_headers.update(headers)

        self._endpoints[name] = {
            "base_url": base_url,
            "headers": endpoint_headers,
            "timeout": timeout or self._default_timeout,
            "client_kwargs": client_kwargs,
        }

        logger.debug(f"Added endpoint '{name}'")

    def _get_client(self, endpoint_name: str) -> httpx.AsyncClient:
        """Get or create HTTP client for the specified endpoint.

        Raises:
            ValueError: If endpoint is not configured
        """
        if endpoint_name not in self._endpoints:
            available = list(self._endpoints.keys())
            raise ValueError(f"Endpoint '{endpoint_name}' not configured. Available: {available}")

        if endpoint_name not in self._clients:
            config = self._endpoints[endpoint_name]

            self._clients[endpoint_name] = httpx.AsyncClient(
                base_url=config["base_url"],
                headers=config["headers"],
                timeout=config["timeout"],
                **config["client_kwargs"],
            )

        return self._clients[endpoint_name]

    async def get(
        self,
        endpoint_name: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Make a GET request to the specified endpoint.

        Returns:
            Parsed JSON response

        Raises:
            TransportError: For HTTP errors or network failures
            UpstreamProtocolError: For invalid JSON
        """
        return await self._make_request(
            endpoint_name, "GET", path, params=params, headers=headers, timeout=timeout
        )

    async def post(
        self,
        endpoint_name: str,
        path: str,
        json_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Make a POST request to the specified endpoint.

        ``json_data`` may be a list, which is how JSON-RPC batches are sent.
        """
        return await self._make_request(
            endpoint_name, "POST", path, json_data=json_data,
            params=params, headers=headers, timeout=timeout
        )

    async def _make_request(
        self,
        endpoint_name: str,
        method: str,
        path: str,
        json_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        client = self._get_client(endpoint_name)
        request_kwargs: Dict[str, Any] = {
            "method": method,
            "url": path,
            "params": params,
            "json": json_data,
            "headers": headers,
        }
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        logger.debug(f"{method} {endpoint_name}{path.split('?')[0]}")

        try:
            response = await client.request(**request_kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"{endpoint_name} answered HTTP {status}")
            raise TransportError(endpoint_name, status_code=status, cause=e) from e
        except httpx.RequestError as e:
            logger.warning(f"{endpoint_name} transport failure: {type(e).__name__}")
            raise TransportError(endpoint_name, detail=type(e).__name__, cause=e) from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamProtocolError(endpoint_name, "invalid JSON response", cause=e) from e

    def get_endpoints(self) -> Dict[str, str]:
        """Get a summary of configured endpoints.

        Returns:
            dict: Mapping of endpoint names to their base URLs
        """
        return {name: config["base_url"] for name, config in self._endpoints.items()}

    async def aclose(self) -> None:
        """Close all HTTP clients and clean up resources."""
        for endpoint_name, client in self._clients.items():
            await client.aclose()
            logger.debug(f"Closed HTTP client for endpoint '{endpoint_name}'")

        self._clients.clear()
        self._endpoints.clear()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
