"""
BNB yield pools on BSC, grouped into stable, structured and degen.

Pipeline: BSC only, TVL floor, BNB-related symbols, classify, sort by APY
(missing APY counts as 0), keep the top ``MAX_PER_CATEGORY`` per category.
"""

from typing import Any, Dict, List, Optional, Sequence

from bnbpulse.metrics.aster_tvl import as_number
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Ok, Result
from bnbpulse.metrics.rules import CATEGORIES, DEFAULT_RULES, ClassificationRule, classify
from bnbpulse.exceptions import UpstreamUnavailable
from bnbpulse.toolkits.data import DefiLlamaToolkit

MIN_TVL_USD = 100_000
MAX_PER_CATEGORY = 8
BNB_SYMBOL_TERMS = ("bnb", "wbnb", "vbnb", "slisbnb", "asbnb", "abnbc", "bnbx", "ankrbnb", "stkbnb")


def is_bnb_pool(pool: Dict[str, Any], min_tvl: float = MIN_TVL_USD) -> bool:
    if pool.get("chain") != "BSC":
        return False
    if as_number(pool.get("tvlUsd")) < min_tvl:
        return False
    symbol = str(pool.get("symbol") or "").lower()
    return any(term in symbol for term in BNB_SYMBOL_TERMS)


def to_yield_pool(pool: Dict[str, Any], rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> Dict[str, Any]:
    project = str(pool.get("project") or "")
    symbol = str(pool.get("symbol") or "")
    return {
        "project": project,
        "symbol": symbol,
        "pool": pool.get("pool"),
        "apy": as_number(pool.get("apy")),
        "apyBase": pool.get("apyBase"),
        "apyReward": pool.get("apyReward"),
        "tvlUsd": as_number(pool.get("tvlUsd")),
        "category": classify(project, symbol, rules),
        "poolMeta": pool.get("poolMeta"),
    }


def summarize_pools(
    raw_pools: List[Dict[str, Any]],
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
    min_tvl: float = MIN_TVL_USD,
    per_category: int = MAX_PER_CATEGORY,
) -> Dict[str, Any]:
    """Filter, classify and rank raw DefiLlama pools into the listing shape."""
    processed = [to_yield_pool(pool, rules) for pool in raw_pools if is_bnb_pool(pool, min_tvl)]
    processed.sort(key=lambda pool: pool["apy"], reverse=True)

    grouped = {
        category: [pool for pool in processed if pool["category"] == category][:per_category]
        for category in CATEGORIES
    }

    top: Optional[Dict[str, Any]] = None
    if processed:
        best = processed[0]
        top = {"project": best["project"], "symbol": best["symbol"], "apy": best["apy"]}

    stable = grouped["stable"]
    avg_stable = sum(pool["apy"] for pool in stable) / len(stable) if stable else 0

    return {
        "pools": grouped,
        "summary": {
            "totalPools": len(processed),
            "topYield": top,
            "avgStableApy": avg_stable,
        },
    }


class YieldsMetric(Metric):
    name = "yields"
    empty_shape = {
        "pools": {"stable": [], "structured": [], "degen": []},
        "summary": {"totalPools": 0, "topYield": None, "avgStableApy": 0},
    }

    def __init__(
        self,
        defillama: DefiLlamaToolkit,
        rules: Sequence[ClassificationRule] = DEFAULT_RULES,
        min_tvl: float = MIN_TVL_USD,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.defillama = defillama
        self.rules = tuple(rules)
        self.min_tvl = min_tvl

    async def reconcile(self) -> Result:
        try:
            pools = await self._call(self.defillama.get_yield_pools)
        except UpstreamUnavailable as e:
            return Failed(e)

        payload = summarize_pools(pools, self.rules, self.min_tvl)
        payload["lastUpdated"] = self._timestamp()
        return Ok(payload)
