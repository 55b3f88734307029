"""
Static last-known-good values and the ready-made hook set for the dashboard.
"""

from typing import Any, Callable, Dict, List, Optional

import httpx

from bnbpulse.client.hooks import DataHook

SUPPLY_FALLBACK: Dict[str, Any] = {
    "circulating": 137_000_000,
    "target": 100_000_000,
    "initialSupply": 200_000_000,
    "totalBurned": 63_000_000,
    "burnPercentage": 31.5,
}

BURN_RATE_FALLBACK: Dict[str, Any] = {"burnRate": 1.5, "latestBurnedFee": 0.001}

BURN_INFO_FALLBACK: Dict[str, Any] = {"nextBurnEstimatedAmount": 1_800_000, "currentBurnProgress": 45}

CHAIN_METRICS_FALLBACK: Dict[str, Any] = {
    "networks": [
        {"network": "BSC", "networkKey": "bscMainnet", "tps": 2100, "gasPrice": 1.0, "dau": 1_200_000},
        {"network": "opBNB", "networkKey": "opBnbMainnet", "tps": 4500, "gasPrice": 0.001, "dau": 850_000},
    ],
}

LP_LOCKING_FALLBACK: List[Dict[str, Any]] = [
    {"platform": "PinkSale", "platformKey": "pinkSale", "lockedValue": 224_750_000, "lpPairs": 15000},
    {"platform": "UNCX Network", "platformKey": "uncxNetwork", "lockedValue": 58_540_000, "lpPairs": 4200},
    {"platform": "Team Finance", "platformKey": "teamFinance", "lockedValue": 42_300_000, "lpPairs": 3100},
]

EXCHANGE_YIELDS_FALLBACK: List[Dict[str, Any]] = [
    {"channel": "Simple Earn", "channelKey": "simpleEarn", "productTypeKey": "exchangeFinance",
     "apr": 2.5, "bonusKey": "hodlerAirdrop"},
    {"channel": "Launchpool", "channelKey": "launchpool", "productTypeKey": "newCoinMining",
     "apr": 8.0, "bonusKey": "estimatedPerBnb"},
    {"channel": "BNB Vault", "channelKey": "bnbVault", "productTypeKey": "aggregatedPool",
     "apr": 5.5, "bonusKey": "autoParticipate"},
    {"channel": "Megadrop", "channelKey": "megadrop", "productTypeKey": "web3Quest",
     "apr": 10.0, "bonusKey": "stakingLocked"},
]

YIELDS_FALLBACK: Dict[str, Any] = {
    "pools": {"stable": [], "structured": [], "degen": []},
    "summary": {"totalPools": 0, "topYield": None, "avgStableApy": 0},
}

BACKING_FALLBACK: Dict[str, Any] = {
    "totalTvlUsd": 0,
    "asBnbSupply": 0,
    "backing": {
        "slisBnb": {"amount": 0, "valueBnb": 0, "usd": 0, "percentage": 100},
        "bnb": {"amount": 0, "usd": 0, "percentage": 0},
    },
    "prices": {"bnb": 0, "slisBnbRate": 1.05},
    "apy": 0,
}

ASTER_TVL_FALLBACK: Dict[str, Any] = {
    "totalTvl": 0,
    "tokens": {"asBnb": {"usd": 0}, "slisBnb": {"usd": 0}, "bnb": {"usd": 0}, "other": {"usd": 0}},
    "externalAsBnb": 0,
    "pools": [],
}


def lp_locking_data(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    return body["data"]


def exchange_channels(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Channels from the exchange yields payload; an empty list counts as a failure."""
    channels = body["channels"]
    if not channels:
        raise ValueError("no yield channels")
    return channels


class PulseClient:
    """One hook per dashboard card, with the card's refresh cadence.

    Example:
        ```python
        async with httpx.AsyncClient(base_url="http://localhost:8000") as http:
            client = PulseClient(http)
            supply = await client.supply.get()
        ```
    """

    def __init__(self, http: httpx.AsyncClient, clock: Optional[Callable[[], float]] = None, retry_delay: float = 1.0):
        def hook(path: str, fallback: Any, stale_seconds: float, retries: int = 3, transform=None) -> DataHook:
            return DataHook(
                http, path, fallback,
                stale_seconds=stale_seconds,
                retries=retries,
                retry_delay=retry_delay,
                clock=clock,
                transform=transform,
            )

        self.supply = hook("/supply", SUPPLY_FALLBACK, 300)
        self.burn_rate = hook("/burn-rate", BURN_RATE_FALLBACK, 30)
        self.burn_info = hook("/burn-info", BURN_INFO_FALLBACK, 300)
        self.chain_metrics = hook("/chain-metrics", CHAIN_METRICS_FALLBACK, 15)
        self.lp_locking = hook("/lp-locking", LP_LOCKING_FALLBACK, 600, retries=2, transform=lp_locking_data)
        self.exchange_yields = hook(
            "/exchange-yields", EXCHANGE_YIELDS_FALLBACK, 300, retries=2, transform=exchange_channels
        )
        self.yields = hook("/yields", YIELDS_FALLBACK, 300)
        self.backing = hook("/backing", BACKING_FALLBACK, 300)
        self.aster_tvl = hook("/aster-tvl", ASTER_TVL_FALLBACK, 300)
