from __future__ import annotations

"""Etherscan v2 Toolkit
======================

Token statistics for BSC through the multichain Etherscan v2 API
(``chainid=56``). Etherscan answers HTTP 200 even on failure and reports the
outcome in a ``status`` field; anything other than ``"1"`` is raised as
``UpstreamProtocolError``.
"""

from typing import Any, Dict, Optional

from bnbpulse.exceptions import UpstreamProtocolError
from bnbpulse.toolkits.base import BaseAPIToolkit
from bnbpulse.toolkits.utils import DataHTTPClient

__all__ = ["EtherscanToolkit", "BSC_CHAIN_ID"]

ENDPOINT_NAME = "etherscan"
ETHERSCAN_BASE_URL = "https://api.etherscan.io"
BSC_CHAIN_ID = 56


class EtherscanToolkit(BaseAPIToolkit):
    """Circulating supply and address balances on BSC."""

    provider = ENDPOINT_NAME

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[DataHTTPClient] = None,
        timeout: float = 10.0,
        chain_id: int = BSC_CHAIN_ID,
        base_url: str = ETHERSCAN_BASE_URL,
        **client_kwargs: Any,
    ):
        self._api_key = api_key
        self._chain_id = chain_id
        self._base_url = base_url
        self._init_http(http_client, timeout, client_kwargs)

    async def _query(self, module: str, action: str, **params: Any) -> str:
        self._require_credentials(api_key=self._api_key)
        await self._ensure_endpoint(ENDPOINT_NAME, self._base_url)

        query: Dict[str, Any] = {
            "chainid": self._chain_id,
            "module": module,
            "action": action,
            **params,
            "apikey": self._api_key,
        }
        data = await self._http_client.get(ENDPOINT_NAME, "/v2/api", params=query)
        data = self._expect_mapping(data, action)

        if str(data.get("status")) != "1":
            detail = data.get("message") or "request rejected"
            raise UpstreamProtocolError(self.provider, f"{action}: {detail}")
        result = data.get("result")
        if result in (None, ""):
            raise UpstreamProtocolError(self.provider, f"{action}: empty result")
        return str(result)

    async def get_circulating_supply(self) -> str:
        """Circulating supply of the native token, as a wei string."""
        return await self._query("stats", "circulatingtokensupply")

    async def get_balance(self, address: str) -> str:
        """Balance of ``address`` in wei."""
        return await self._query("account", "balance", address=address, tag="latest")
