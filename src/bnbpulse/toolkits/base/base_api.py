from __future__ import annotations

"""Base API Toolkit Helper Class
===============================

A helper class providing the API concerns shared by the upstream toolkits:
lazy endpoint registration on a ``DataHTTPClient``, fail-closed credential
checks, and payload shape checks. HTTP transport lives in ``DataHTTPClient``;
retry and fallback policy live in the metrics.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from bnbpulse.exceptions import MissingCredentialsError, UpstreamProtocolError
from bnbpulse.toolkits.utils import DataHTTPClient

__all__ = ["BaseAPIToolkit"]


class BaseAPIToolkit:
    """Helper base class for upstream toolkits.

    Example:
        ```python
        class CoinGeckoToolkit(BaseAPIToolkit):
            provider = "coingecko"

            def __init__(self, http_client=None, **client_kwargs):
                self._init_http(http_client, client_kwargs=client_kwargs)

            async def get_simple_price(self, ids):
                await self._ensure_endpoint("coingecko", "https://api.coingecko.com/api/v3")
                data = await self._http_client.get("coingecko", "/simple/price", params=...)
                return self._expect_mapping(data, "simple price")
        ```
    """

    provider: str = "upstream"

    def _init_http(
        self,
        http_client: Optional[DataHTTPClient] = None,
        timeout: float = 10.0,
        client_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Attach a transport; a client created here is closed by ``aclose``."""
        self._owns_http_client = http_client is None
        self._http_client = http_client or DataHTTPClient(default_timeout=timeout)
        self._client_kwargs = client_kwargs or {}

    async def _ensure_endpoint(
        self,
        name: str,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if name not in self._http_client.get_endpoints():
            await self._http_client.add_endpoint(name, base_url, headers=headers, **self._client_kwargs)

    def _require_credentials(self, **credentials: Optional[str]) -> None:
        """Fail closed before any network call when a credential is unset.

        Raises:
            MissingCredentialsError: Naming every missing credential
        """
        missing = [name for name, value in credentials.items() if not value]
        if missing:
            logger.error(f"{self.provider} call refused: missing {', '.join(missing)}")
            raise MissingCredentialsError(self.provider, missing)

    def _expect_mapping(self, payload: Any, what: str) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise UpstreamProtocolError(self.provider, f"expected an object for {what}")
        return payload

    def _expect_list(self, payload: Any, what: str) -> List[Any]:
        if not isinstance(payload, list):
            raise UpstreamProtocolError(self.provider, f"expected a list for {what}")
        return payload

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()
            logger.debug(f"Closed {self.__class__.__name__}")
