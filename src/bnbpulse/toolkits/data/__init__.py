"""Upstream data toolkits."""

from .binance_toolkit import BinanceToolkit
from .coingecko_toolkit import CoinGeckoToolkit
from .defillama_toolkit import DefiLlamaToolkit
from .etherscan_toolkit import EtherscanToolkit
from .nodereal_toolkit import NodeRealToolkit

__all__ = [
    "BinanceToolkit",
    "CoinGeckoToolkit",
    "DefiLlamaToolkit",
    "EtherscanToolkit",
    "NodeRealToolkit",
]
