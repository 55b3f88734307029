from __future__ import annotations

"""CoinGecko Toolkit
===================

Spot prices from CoinGecko's ``/simple/price`` endpoint. Used as the second
source for the BNB/USD price when Binance is unreachable. An optional demo
API key is sent as ``x-cg-demo-api-key``.
"""

from typing import Any, Optional

from bnbpulse.exceptions import UpstreamProtocolError
from bnbpulse.toolkits.base import BaseAPIToolkit
from bnbpulse.toolkits.utils import DataHTTPClient

__all__ = ["CoinGeckoToolkit"]

ENDPOINT_NAME = "coingecko"
COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"


class CoinGeckoToolkit(BaseAPIToolkit):
    provider = ENDPOINT_NAME

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[DataHTTPClient] = None,
        timeout: float = 10.0,
        base_url: str = COINGECKO_BASE_URL,
        **client_kwargs: Any,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._init_http(http_client, timeout, client_kwargs)

    async def _setup_endpoints(self) -> None:
        headers = {"x-cg-demo-api-key": self._api_key} if self._api_key else None
        await self._ensure_endpoint(ENDPOINT_NAME, self._base_url, headers=headers)

    async def get_simple_price(self, coin_id: str = "binancecoin", vs_currency: str = "usd") -> float:
        """Price of ``coin_id`` in ``vs_currency``.

        Raises:
            TransportError: For HTTP or network failures
            UpstreamProtocolError: If the coin or currency is absent from the response
        """
        await self._setup_endpoints()
        data = await self._http_client.get(
            ENDPOINT_NAME, "/simple/price", params={"ids": coin_id, "vs_currencies": vs_currency}
        )
        data = self._expect_mapping(data, "simple price")
        try:
            return float(data[coin_id][vs_currency])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamProtocolError(self.provider, f"no {vs_currency} price for {coin_id}", cause=e) from e
