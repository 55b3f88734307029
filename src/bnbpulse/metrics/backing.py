"""
asBNB backing composition.

Amounts are settled first, through these named fallbacks in order:

1. token breakdown from the latest DefiLlama ``tokens`` entry
2. no breakdown: the asBNB supply as a single-asset slisBNB estimate
3. still nothing but a positive TVL: slisBNB derived from TVL and price

Percentages are computed only afterwards, so they sum to 100 whenever the
total backing is positive and are 100/0 when it is zero.
"""

from typing import Any, Dict, List, Tuple

from bnbpulse.exceptions import UpstreamProtocolError, UpstreamUnavailable
from bnbpulse.metrics.aster_tvl import ASTER_SLUG, as_mapping, as_number, aster_bsc_tvl, is_aster_project
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Result, outcome
from bnbpulse.toolkits.data import BinanceToolkit, CoinGeckoToolkit, DefiLlamaToolkit, NodeRealToolkit
from bnbpulse.toolkits.utils.normalizers import round_to, wei_to_token

ASBNB_TOKEN = "0x77734e70b6E88b4d82fE632a168EDf6e700912b6"

# slisBNB trades at a slight premium to BNB
SLISBNB_RATE = 1.05

SLISBNB_ALIASES = frozenset({"SLISBNB"})
BNB_ALIASES = frozenset({"BNB", "WBNB"})


def token_breakdown(protocol: Dict[str, Any]) -> Tuple[float, float]:
    """(slisBNB, BNB) amounts from the latest ``tokens`` snapshot; zeros if absent."""
    snapshots = protocol.get("tokens")
    if not isinstance(snapshots, list) or not snapshots or not isinstance(snapshots[-1], dict):
        return 0.0, 0.0

    slis_bnb = 0.0
    bnb = 0.0
    for symbol, amount in as_mapping(snapshots[-1].get("tokens")).items():
        symbol = str(symbol).upper()
        if symbol in SLISBNB_ALIASES:
            slis_bnb += as_number(amount)
        elif symbol in BNB_ALIASES:
            bnb += as_number(amount)
    return slis_bnb, bnb


def backing_percentages(slis_bnb_usd: float, bnb_usd: float) -> Tuple[float, float]:
    total = slis_bnb_usd + bnb_usd
    if total <= 0:
        return 100.0, 0.0
    return slis_bnb_usd * 100 / total, bnb_usd * 100 / total


def best_aster_apy(pools: List[Dict[str, Any]]) -> float:
    """Highest APY among Aster/Astherus pools on BSC, 0 if there are none."""
    apys = [
        as_number(pool.get("apy"))
        for pool in pools
        if pool.get("chain") == "BSC" and is_aster_project(pool.get("project"))
    ]
    return max(apys, default=0.0)


class BackingMetric(Metric):
    name = "backing"
    empty_shape = {
        "totalTvlUsd": 0,
        "asBnbSupply": 0,
        "backing": {
            "slisBnb": {"amount": 0, "valueBnb": 0, "usd": 0, "percentage": 0},
            "bnb": {"amount": 0, "usd": 0, "percentage": 0},
        },
        "prices": {"bnb": 0, "slisBnbRate": SLISBNB_RATE},
        "apy": 0,
    }

    def __init__(
        self,
        nodereal: NodeRealToolkit,
        binance: BinanceToolkit,
        coingecko: CoinGeckoToolkit,
        defillama: DefiLlamaToolkit,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.nodereal = nodereal
        self.binance = binance
        self.coingecko = coingecko
        self.defillama = defillama

    async def bnb_price(self) -> float:
        """BNB/USD from Binance, then CoinGecko."""
        return await self._first_available(self.binance.get_ticker_price, self.coingecko.get_simple_price)

    async def reconcile(self) -> Result:
        supply_raw, price, protocol, pools = await self._fan_out(
            lambda: self.nodereal.total_supply(ASBNB_TOKEN),
            self.bnb_price,
            lambda: self.defillama.get_protocol(ASTER_SLUG),
            self.defillama.get_yield_pools,
        )
        if isinstance(supply_raw, UpstreamUnavailable):
            return Failed(supply_raw)
        if isinstance(price, UpstreamUnavailable):
            return Failed(price)
        try:
            as_bnb_supply = float(wei_to_token(supply_raw))
        except ValueError as e:
            return Failed(UpstreamProtocolError("nodereal", "malformed asBNB supply", cause=e))

        reasons: List[str] = []
        tvl = 0.0
        slis_bnb = bnb = 0.0
        if isinstance(protocol, UpstreamUnavailable):
            reasons.append(f"protocol data unavailable ({protocol.message})")
        else:
            tvl = aster_bsc_tvl(protocol)
            slis_bnb, bnb = token_breakdown(protocol)

        if slis_bnb == 0 and bnb == 0:
            if as_bnb_supply > 0:
                slis_bnb = as_bnb_supply
                reasons.append("no token breakdown, asBNB supply used as slisBNB estimate")
            elif tvl > 0 and price > 0:
                slis_bnb = tvl / (SLISBNB_RATE * price)
                reasons.append("no token breakdown or supply, slisBNB derived from TVL")

        slis_bnb_usd = slis_bnb * SLISBNB_RATE * price
        bnb_usd = bnb * price
        slis_pct, bnb_pct = backing_percentages(slis_bnb_usd, bnb_usd)
        total_tvl = tvl if tvl > 0 else slis_bnb_usd + bnb_usd

        if isinstance(pools, UpstreamUnavailable):
            reasons.append(f"yield pools unavailable ({pools.message}), APY reported as 0")
            apy = 0.0
        else:
            apy = best_aster_apy(pools)

        payload: Dict[str, Any] = {
            "totalTvlUsd": round_to(total_tvl),
            "asBnbSupply": round_to(as_bnb_supply, 2),
            "backing": {
                "slisBnb": {
                    "amount": round_to(slis_bnb, 2),
                    "valueBnb": round_to(slis_bnb * SLISBNB_RATE, 2),
                    "usd": round_to(slis_bnb_usd),
                    "percentage": round_to(slis_pct, 1),
                },
                "bnb": {
                    "amount": round_to(bnb, 2),
                    "usd": round_to(bnb_usd),
                    "percentage": round_to(bnb_pct, 1),
                },
            },
            "prices": {"bnb": price, "slisBnbRate": SLISBNB_RATE},
            "apy": apy,
            "lastUpdated": self._timestamp(),
        }
        return outcome(payload, reasons)
