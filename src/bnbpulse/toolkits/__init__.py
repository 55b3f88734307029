"""
Toolkits wrapping the upstream providers.

- base: shared credential and payload checks
- utils: HTTP transport and unit normalizers
- data: one toolkit per provider
"""

from .base import BaseAPIToolkit
from .data import (
    BinanceToolkit,
    CoinGeckoToolkit,
    DefiLlamaToolkit,
    EtherscanToolkit,
    NodeRealToolkit,
)
from .utils import DataHTTPClient

__all__ = [
    "BaseAPIToolkit",
    "DataHTTPClient",
    "BinanceToolkit",
    "CoinGeckoToolkit",
    "DefiLlamaToolkit",
    "EtherscanToolkit",
    "NodeRealToolkit",
]
