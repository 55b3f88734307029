from __future__ import annotations

"""Binance Toolkit
=================

Async client for the Binance endpoints the dashboard reads:

- the public spot ticker (``/api/v3/ticker/price``)
- the signed Simple Earn product lists (flexible and locked)

Signed requests follow Binance's scheme: the query string, including a
millisecond ``timestamp``, is signed with HMAC-SHA256 using the API secret and
sent with an ``X-MBX-APIKEY`` header. Signed calls fail closed with
``MissingCredentialsError`` when the key or secret is unset.
"""

import hashlib
import hmac
import time
import urllib.parse
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from bnbpulse.exceptions import UpstreamProtocolError
from bnbpulse.toolkits.base import BaseAPIToolkit
from bnbpulse.toolkits.utils import DataHTTPClient

__all__ = ["BinanceToolkit", "sign_query"]

ENDPOINT_NAME = "binance"
BINANCE_BASE_URL = "https://api.binance.com"


def sign_query(params: Dict[str, Any], secret: str) -> str:
    """HMAC-SHA256 hex digest of the urlencoded ``params``."""
    query_string = urllib.parse.urlencode(params)
    return hmac.new(secret.encode(), query_string.encode(), hashlib.sha256).hexdigest()


class BinanceToolkit(BaseAPIToolkit):
    """Spot prices and Simple Earn products.

    Args:
        api_key: Binance API key, required for Simple Earn calls
        api_secret: Binance API secret, required for Simple Earn calls
        http_client: Shared transport; a private one is created if omitted
        clock: Returns milliseconds since the epoch for request timestamps
    """

    provider = ENDPOINT_NAME

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        http_client: Optional[DataHTTPClient] = None,
        timeout: float = 10.0,
        base_url: str = BINANCE_BASE_URL,
        clock: Optional[Callable[[], int]] = None,
        **client_kwargs: Any,
    ):
        self._api_key = api_key
        self._api_secret = api_secret
        self._base_url = base_url
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._init_http(http_client, timeout, client_kwargs)

    async def _setup_endpoints(self) -> None:
        await self._ensure_endpoint(ENDPOINT_NAME, self._base_url)

    async def get_ticker_price(self, symbol: str = "BNBUSDT") -> float:
        """Latest spot price for ``symbol``."""
        await self._setup_endpoints()
        data = await self._http_client.get(ENDPOINT_NAME, "/api/v3/ticker/price", params={"symbol": symbol})
        data = self._expect_mapping(data, "ticker price")
        try:
            return float(data["price"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamProtocolError(self.provider, f"no price for {symbol}", cause=e) from e

    async def signed_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a signed endpoint.

        Raises:
            MissingCredentialsError: If the API key or secret is unset; no
                request is made
        """
        self._require_credentials(api_key=self._api_key, api_secret=self._api_secret)
        await self._setup_endpoints()

        params = dict(params or {})
        params["timestamp"] = str(self._clock())
        params["signature"] = sign_query(params, self._api_secret)

        return await self._http_client.get(
            ENDPOINT_NAME, path, params=params, headers={"X-MBX-APIKEY": self._api_key}
        )

    def _product_rows(self, data: Any, what: str) -> List[Dict[str, Any]]:
        data = self._expect_mapping(data, what)
        rows = data.get("rows", [])
        if not isinstance(rows, list):
            raise UpstreamProtocolError(self.provider, f"{what} rows is not a list")
        logger.debug(f"Binance {what}: {len(rows)} products")
        return [row for row in rows if isinstance(row, dict)]

    async def get_flexible_products(self, asset: str = "BNB", size: int = 100) -> List[Dict[str, Any]]:
        data = await self.signed_get(
            "/sapi/v1/simple-earn/flexible/list", {"asset": asset, "size": size}
        )
        return self._product_rows(data, "flexible products")

    async def get_locked_products(self, asset: str = "BNB", size: int = 100) -> List[Dict[str, Any]]:
        data = await self.signed_get(
            "/sapi/v1/simple-earn/locked/list", {"asset": asset, "size": size}
        )
        return self._product_rows(data, "locked products")
