"""
Locked LP value on BSC for the major liquidity lockers.
"""

from typing import Any, Dict, List

from loguru import logger

from bnbpulse.exceptions import ReconciliationFailure, UpstreamUnavailable
from bnbpulse.metrics.aster_tvl import as_mapping, as_number
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Ok, Result, UsedFallback
from bnbpulse.toolkits.data import DefiLlamaToolkit
from bnbpulse.toolkits.utils.normalizers import round_to

# (DefiLlama slug, platform key, display name)
LOCKER_PLATFORMS = (
    ("pinksale", "pinkSale", "PinkSale"),
    ("uncx-network", "uncxNetwork", "UNCX Network"),
    ("team-finance", "teamFinance", "Team Finance"),
)

# Share of total TVL assumed to be on BSC when no chain split is published
BSC_SHARE_ESTIMATE = 0.3

FALLBACK_LOCKERS = (
    ("PinkSale", "pinkSale", 224_750_000, 15000),
    ("UNCX Network", "uncxNetwork", 58_540_000, 4200),
    ("Team Finance", "teamFinance", 42_300_000, 3100),
)


def _last_liquidity(series: Any) -> float:
    if isinstance(series, list) and series and isinstance(series[-1], dict):
        return as_number(series[-1].get("totalLiquidityUSD"))
    return 0.0


def bsc_locked_value(protocol: Dict[str, Any]) -> float:
    """BSC TVL: chain series, then current chain TVL, then a share of the total."""
    bsc_chain = as_mapping(as_mapping(protocol.get("chainTvls")).get("BSC"))
    value = _last_liquidity(bsc_chain.get("tvl"))

    if value == 0:
        current = as_mapping(protocol.get("currentChainTvls"))
        value = as_number(current.get("BSC")) or as_number(current.get("Binance"))

    if value == 0:
        value = _last_liquidity(protocol.get("tvl")) * BSC_SHARE_ESTIMATE

    return value


def fallback_lockers(timestamp: str) -> List[Dict[str, Any]]:
    return [
        {
            "platform": platform,
            "platformKey": key,
            "lockedValue": value,
            "lpPairs": pairs,
            "lastUpdated": timestamp,
        }
        for platform, key, value, pairs in FALLBACK_LOCKERS
    ]


class LpLockingMetric(Metric):
    name = "lp_locking"
    empty_shape = {"success": False, "data": [], "source": "fallback"}

    def __init__(self, defillama: DefiLlamaToolkit, **kwargs: Any):
        super().__init__(**kwargs)
        self.defillama = defillama

    async def reconcile(self) -> Result:
        protocols = await self._fan_out(
            *(lambda slug=slug: self.defillama.get_protocol(slug) for slug, _, _ in LOCKER_PLATFORMS)
        )
        failures = [p for p in protocols if isinstance(p, UpstreamUnavailable)]
        if len(failures) == len(protocols) and self.serve_stale_on_failure and self.cache.peek() is not None:
            # keep the last live payload rather than the reference values
            return Failed(ReconciliationFailure(self.name, "every locker is unavailable", cause=failures[-1]))
        timestamp = self._timestamp()

        lockers: List[Dict[str, Any]] = []
        for (slug, key, platform), protocol in zip(LOCKER_PLATFORMS, protocols):
            if isinstance(protocol, UpstreamUnavailable):
                logger.warning(f"{self.name}: {slug} unavailable ({protocol.message})")
                continue
            value = int(round_to(bsc_locked_value(protocol)))
            if value > 0:
                lockers.append({
                    "platform": platform,
                    "platformKey": key,
                    "lockedValue": value,
                    "lpPairs": 0,
                    "lastUpdated": timestamp,
                })

        fallback = not lockers
        if fallback:
            lockers = fallback_lockers(timestamp)
        lockers.sort(key=lambda entry: entry["lockedValue"], reverse=True)

        payload: Dict[str, Any] = {
            "success": True,
            "data": lockers,
            "source": "fallback" if fallback else "defillama",
            "timestamp": timestamp,
        }
        if fallback:
            return UsedFallback(payload, ["no locker reported a positive BSC value, using reference values"])
        return Ok(payload)
