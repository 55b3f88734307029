from __future__ import annotations

"""NodeReal BSC JSON-RPC Toolkit
===============================

Async JSON-RPC client for the NodeReal BSC mainnet gateway. Covers the
standard ``eth_*`` methods the dashboard reads (block number, gas price,
blocks, ``eth_call``) plus NodeReal's enhanced ``nr_getBlockReward`` and
``nr_getBurnInfo``.

Requests can be sent one at a time (``call``) or as a JSON-RPC batch
(``batch``). Batch responses are matched back to requests by ``id``, so the
provider's response order does not matter.

The API key is part of the endpoint path, so it never appears in logs or
error messages: the transport reports failures by endpoint name.
"""

from itertools import count
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from bnbpulse.exceptions import RpcError, UpstreamProtocolError
from bnbpulse.toolkits.base import BaseAPIToolkit
from bnbpulse.toolkits.utils import DataHTTPClient

__all__ = ["NodeRealToolkit", "TOTAL_SUPPLY_SELECTOR"]

NODEREAL_BASE_URL = "https://bsc-mainnet.nodereal.io/v1"
ENDPOINT_NAME = "nodereal"

# ERC-20 totalSupply()
TOTAL_SUPPLY_SELECTOR = "0x18160ddd"


class NodeRealToolkit(BaseAPIToolkit):
    """JSON-RPC access to BSC through NodeReal.

    Example:
        ```python
        toolkit = NodeRealToolkit(api_key="...")
        head = await toolkit.block_number()
        rewards = await toolkit.get_block_rewards(range(head - 19, head + 1))
        await toolkit.aclose()
        ```
    """

    provider = ENDPOINT_NAME

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[DataHTTPClient] = None,
        timeout: float = 10.0,
        base_url: str = NODEREAL_BASE_URL,
        **client_kwargs: Any,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._ids = count(1)
        self._init_http(http_client, timeout, client_kwargs)

    async def _setup_endpoints(self) -> None:
        self._require_credentials(api_key=self._api_key)
        await self._ensure_endpoint(ENDPOINT_NAME, f"{self._base_url}/{self._api_key}")

    def _request(self, method: str, params: Sequence[Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params)}

    def _unwrap(self, response: Any, method: str) -> Any:
        response = self._expect_mapping(response, method)
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(self.provider, method, str(error.get("message", "unknown error")), error.get("code"))
            raise RpcError(self.provider, method, str(error))
        if "result" not in response:
            raise UpstreamProtocolError(self.provider, f"{method}: response has no result")
        return response["result"]

    async def call(self, method: str, params: Sequence[Any] = ()) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Raises:
            MissingCredentialsError: If no API key is configured
            TransportError: For HTTP or network failures
            RpcError: If the response carries an ``error`` member
        """
        await self._setup_endpoints()
        request = self._request(method, params)
        response = await self._http_client.post(ENDPOINT_NAME, "", json_data=request)
        return self._unwrap(response, method)

    async def batch(self, calls: Sequence[Tuple[str, Sequence[Any]]]) -> List[Any]:
        """Send several requests in one JSON-RPC batch.

        Returns the results in the order of ``calls``. Any member error fails
        the whole batch.
        """
        if not calls:
            return []
        await self._setup_endpoints()
        requests = [self._request(method, params) for method, params in calls]
        response = await self._http_client.post(ENDPOINT_NAME, "", json_data=requests)
        response = self._expect_list(response, "batch")

        by_id = {item.get("id"): item for item in response if isinstance(item, dict)}
        results = []
        for request in requests:
            item = by_id.get(request["id"])
            if item is None:
                raise UpstreamProtocolError(self.provider, f"{request['method']}: missing from batch response")
            results.append(self._unwrap(item, request["method"]))
        logger.debug(f"NodeReal batch of {len(requests)} completed")
        return results

    async def block_number(self) -> str:
        return await self.call("eth_blockNumber")

    async def gas_price(self) -> str:
        return await self.call("eth_gasPrice")

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, block])

    async def total_supply(self, token_address: str) -> str:
        """Raw ``totalSupply()`` of an ERC-20 token, hex-encoded wei."""
        return await self.eth_call(token_address, TOTAL_SUPPLY_SELECTOR)

    async def get_blocks(self, block_numbers: Sequence[int], full_transactions: bool = False) -> List[Dict[str, Any]]:
        results = await self.batch(
            [("eth_getBlockByNumber", [hex(n), full_transactions]) for n in block_numbers]
        )
        return [self._expect_mapping(block, "eth_getBlockByNumber") for block in results]

    async def get_block_reward(self, block_number: int) -> Dict[str, Any]:
        reward = await self.call("nr_getBlockReward", [block_number])
        return self._expect_mapping(reward, "nr_getBlockReward")

    async def get_block_rewards(self, block_numbers: Sequence[int]) -> List[Dict[str, Any]]:
        results = await self.batch([("nr_getBlockReward", [n]) for n in block_numbers])
        return [self._expect_mapping(reward, "nr_getBlockReward") for reward in results]

    async def get_burn_info(self) -> Dict[str, Any]:
        info = await self.call("nr_getBurnInfo")
        return self._expect_mapping(info, "nr_getBurnInfo")
