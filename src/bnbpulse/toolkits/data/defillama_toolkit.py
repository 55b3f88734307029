from __future__ import annotations

"""DefiLlama Toolkit
===================

Read-only access to the two public DefiLlama APIs the dashboard uses:

- ``api.llama.fi``: protocol documents (TVL history, per-chain TVL and
  token breakdowns)
- ``yields.llama.fi``: the yield pool list

Both APIs are keyless.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from bnbpulse.exceptions import UpstreamProtocolError
from bnbpulse.toolkits.base import BaseAPIToolkit
from bnbpulse.toolkits.utils import DataHTTPClient

__all__ = ["DefiLlamaToolkit"]

_ENDPOINTS = {
    "defillama": "https://api.llama.fi",
    "defillama_yields": "https://yields.llama.fi",
}


class DefiLlamaToolkit(BaseAPIToolkit):
    """Protocol and yield pool lookups.

    Example:
        ```python
        toolkit = DefiLlamaToolkit()
        aster = await toolkit.get_protocol("aster")
        pools = await toolkit.get_yield_pools()
        ```
    """

    provider = "defillama"

    def __init__(
        self,
        http_client: Optional[DataHTTPClient] = None,
        timeout: float = 10.0,
        **client_kwargs: Any,
    ):
        self._init_http(http_client, timeout, client_kwargs)

    async def _setup_endpoints(self) -> None:
        for name, base_url in _ENDPOINTS.items():
            await self._ensure_endpoint(name, base_url)

    async def get_protocol(self, slug: str) -> Dict[str, Any]:
        """Fetch the protocol document for ``slug``.

        Raises:
            TransportError: For HTTP or network failures (404 for unknown slugs)
            UpstreamProtocolError: If the body is not an object
        """
        await self._setup_endpoints()
        data = await self._http_client.get("defillama", f"/protocol/{slug}")
        return self._expect_mapping(data, f"protocol {slug}")

    async def get_yield_pools(self) -> List[Dict[str, Any]]:
        """Fetch every yield pool; the response must carry a ``data`` list."""
        await self._setup_endpoints()
        data = await self._http_client.get("defillama_yields", "/pools")
        data = self._expect_mapping(data, "pools")
        pools = data.get("data")
        if not isinstance(pools, list):
            raise UpstreamProtocolError(self.provider, "pools response has no data list")
        logger.debug(f"DefiLlama returned {len(pools)} yield pools")
        return [pool for pool in pools if isinstance(pool, dict)]
