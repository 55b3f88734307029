"""
Wiring between configuration, toolkits and metrics.

``Toolkits`` holds one client per upstream provider, all sharing a single
``DataHTTPClient``. ``build_metrics`` creates every metric with its own cache.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from loguru import logger

from bnbpulse.config import PulseConfig
from bnbpulse.metrics.aster_tvl import AsterTvlMetric
from bnbpulse.metrics.backing import BackingMetric
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.burn import BurnInfoMetric, BurnRateMetric
from bnbpulse.metrics.cache import ResultCache
from bnbpulse.metrics.chain_metrics import ChainMetricsMetric
from bnbpulse.metrics.exchange_yields import ExchangeYieldsMetric
from bnbpulse.metrics.lp_locking import LpLockingMetric
from bnbpulse.metrics.supply import SupplyMetric
from bnbpulse.metrics.yields import YieldsMetric
from bnbpulse.toolkits.data import (
    BinanceToolkit,
    CoinGeckoToolkit,
    DefiLlamaToolkit,
    EtherscanToolkit,
    NodeRealToolkit,
)
from bnbpulse.toolkits.utils import DataHTTPClient


@dataclass
class Toolkits:
    http_client: DataHTTPClient
    nodereal: NodeRealToolkit
    etherscan: EtherscanToolkit
    binance: BinanceToolkit
    coingecko: CoinGeckoToolkit
    defillama: DefiLlamaToolkit

    @classmethod
    def from_config(cls, config: PulseConfig, **client_kwargs: Any) -> "Toolkits":
        """Build every toolkit over one shared transport.

        ``client_kwargs`` reach ``httpx.AsyncClient``; tests pass a
        ``transport`` here.
        """
        keys = config.api_keys
        http_client = DataHTTPClient(default_timeout=config.http.timeout_seconds)
        return cls(
            http_client=http_client,
            nodereal=NodeRealToolkit(api_key=keys.nodereal_api_key, http_client=http_client, **client_kwargs),
            etherscan=EtherscanToolkit(api_key=keys.etherscan_api_key, http_client=http_client, **client_kwargs),
            binance=BinanceToolkit(
                api_key=keys.binance_api_key,
                api_secret=keys.binance_api_secret,
                http_client=http_client,
                **client_kwargs,
            ),
            coingecko=CoinGeckoToolkit(api_key=keys.coingecko_api_key, http_client=http_client, **client_kwargs),
            defillama=DefiLlamaToolkit(http_client=http_client, **client_kwargs),
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()
        logger.debug("Closed upstream toolkits")


def build_metrics(
    config: PulseConfig,
    toolkits: Toolkits,
    clock: Optional[Callable[[], float]] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> Dict[str, Metric]:
    """One metric per dashboard endpoint, keyed by metric name."""

    def settings(name: str) -> Dict[str, Any]:
        return {
            "cache": ResultCache(config.cache.ttl_for(name), clock=clock, name=name),
            "retry_attempts": config.http.retry_attempts,
            "retry_delay": config.http.retry_delay_seconds,
            "serve_stale_on_failure": config.cache.serve_stale_on_failure,
            "now": now,
        }

    metrics = [
        SupplyMetric(toolkits.etherscan, config.supply, **settings(SupplyMetric.name)),
        BurnRateMetric(toolkits.nodereal, **settings(BurnRateMetric.name)),
        BurnInfoMetric(toolkits.nodereal, **settings(BurnInfoMetric.name)),
        BackingMetric(
            toolkits.nodereal,
            toolkits.binance,
            toolkits.coingecko,
            toolkits.defillama,
            **settings(BackingMetric.name),
        ),
        AsterTvlMetric(toolkits.defillama, **settings(AsterTvlMetric.name)),
        YieldsMetric(toolkits.defillama, **settings(YieldsMetric.name)),
        ExchangeYieldsMetric(toolkits.binance, **settings(ExchangeYieldsMetric.name)),
        LpLockingMetric(toolkits.defillama, **settings(LpLockingMetric.name)),
        ChainMetricsMetric(toolkits.nodereal, **settings(ChainMetricsMetric.name)),
    ]
    return {metric.name: metric for metric in metrics}
