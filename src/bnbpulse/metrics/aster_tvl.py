"""
Aster TVL on BSC and the external protocols holding asBNB.
"""

from typing import Any, Dict, List

from bnbpulse.exceptions import UpstreamUnavailable
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Result, outcome
from bnbpulse.toolkits.data import DefiLlamaToolkit
from bnbpulse.toolkits.utils.normalizers import round_to

ASTER_SLUG = "aster"
ASTER_PROJECT_TERMS = ("aster", "astherus")
BSC_TVL_KEYS = ("BSC", "BSC-staking")

# Assumed split of the protocol's own backing
SLISBNB_SHARE = 0.6
BNB_SHARE = 0.4

MAX_EXTERNAL_POOLS = 10


def as_number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def as_mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def aster_bsc_tvl(protocol: Dict[str, Any]) -> float:
    """BSC plus BSC-staking TVL from a DefiLlama protocol document."""
    chain_tvls = as_mapping(protocol.get("currentChainTvls"))
    return sum(as_number(chain_tvls.get(key)) for key in BSC_TVL_KEYS)


def is_aster_project(project: str) -> bool:
    project = (project or "").lower()
    return any(term in project for term in ASTER_PROJECT_TERMS)


def external_asbnb_pools(pools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """BSC pools with asBNB in the symbol, outside Aster itself, largest first."""
    matches = [
        pool for pool in pools
        if str(pool.get("chain") or "").lower() == "bsc"
        and "asbnb" in str(pool.get("symbol") or "").lower()
        and not is_aster_project(pool.get("project"))
    ]
    return sorted(matches, key=lambda pool: as_number(pool.get("tvlUsd")), reverse=True)


class AsterTvlMetric(Metric):
    name = "aster_tvl"
    empty_shape = {
        "totalTvl": 0,
        "tokens": {
            "asBnb": {"usd": 0},
            "slisBnb": {"usd": 0},
            "bnb": {"usd": 0},
            "other": {"usd": 0},
        },
        "externalAsBnb": 0,
        "pools": [],
    }

    def __init__(self, defillama: DefiLlamaToolkit, **kwargs: Any):
        super().__init__(**kwargs)
        self.defillama = defillama

    async def reconcile(self) -> Result:
        protocol, pools = await self._fan_out(
            lambda: self.defillama.get_protocol(ASTER_SLUG),
            self.defillama.get_yield_pools,
        )
        if isinstance(protocol, UpstreamUnavailable):
            return Failed(protocol)

        reasons: List[str] = []
        total_tvl = aster_bsc_tvl(protocol)

        if isinstance(pools, UpstreamUnavailable):
            reasons.append(f"yield pools unavailable ({pools.message}), no external asBNB data")
            external: List[Dict[str, Any]] = []
        else:
            external = external_asbnb_pools(pools)

        payload: Dict[str, Any] = {
            "totalTvl": total_tvl,
            "tokens": {
                "asBnb": {"usd": total_tvl},
                "slisBnb": {"usd": round_to(total_tvl * SLISBNB_SHARE)},
                "bnb": {"usd": round_to(total_tvl * BNB_SHARE)},
                "other": {"usd": 0},
            },
            "externalAsBnb": sum(as_number(pool.get("tvlUsd")) for pool in external),
            "pools": [
                {
                    "symbol": pool.get("symbol"),
                    "tvlUsd": pool.get("tvlUsd"),
                    "pool": pool.get("pool"),
                    "project": pool.get("project"),
                }
                for pool in external[:MAX_EXTERNAL_POOLS]
            ],
            "lastUpdated": self._timestamp(),
        }
        return outcome(payload, reasons)
