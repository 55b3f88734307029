"""
Binance Simple Earn yields for BNB.

Flexible and locked products are fetched concurrently. One failed list is
reported as empty; both failing fails the metric. Missing Binance credentials
are never papered over.
"""

from typing import Any, Dict, List

from bnbpulse.exceptions import ReconciliationFailure, UpstreamUnavailable
from bnbpulse.metrics.aster_tvl import as_mapping
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Result, outcome
from bnbpulse.toolkits.data import BinanceToolkit
from bnbpulse.toolkits.utils.normalizers import round_to

DEFAULT_LOCK_DAYS = 120
LAUNCHPOOL_APR = 8.0
BNB_VAULT_APR = 5.5


def _apr(rate: Any) -> float:
    try:
        return round_to(float(rate) * 100, 4)
    except (TypeError, ValueError):
        return 0.0


def flexible_product(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "asset": row.get("asset"),
        "apr": _apr(row.get("latestAnnualPercentageRate")),
        "tierRates": row.get("tierAnnualPercentageRate"),
        "minAmount": row.get("minPurchaseAmount"),
        "productType": "flexible",
        "status": row.get("status"),
        "canPurchase": row.get("canPurchase"),
    }


def locked_product(row: Dict[str, Any]) -> Dict[str, Any]:
    detail = row.get("detail") if isinstance(row.get("detail"), dict) else row
    return {
        "asset": detail.get("asset"),
        "rewardAsset": detail.get("rewardAsset"),
        "apr": _apr(detail.get("apr")),
        "duration": detail.get("duration"),
        "minAmount": as_mapping(row.get("quota")).get("minimum", detail.get("minPurchaseAmount")),
        "productType": "locked",
        "status": detail.get("status"),
        "canPurchase": detail.get("canPurchase", row.get("canPurchase")),
    }


def yield_channels(flexible: List[Dict[str, Any]], locked: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Dashboard channels: live Simple Earn rates plus the estimated programs."""
    channels: List[Dict[str, Any]] = []

    bnb_flexible = next((p for p in flexible if p["asset"] == "BNB"), None)
    if bnb_flexible:
        channels.append({
            "channel": "Simple Earn Flexible",
            "channelKey": "simpleEarnFlexible",
            "productTypeKey": "flexibleEarn",
            "apr": bnb_flexible["apr"],
            "bonusKey": "hodlerAirdrop",
        })

    bnb_locked = [p for p in locked if p["asset"] == "BNB" and p["apr"] > 0]
    if bnb_locked:
        best = max(bnb_locked, key=lambda p: p["apr"])
        channels.append({
            "channel": "Simple Earn Locked",
            "channelKey": "simpleEarnLocked",
            "productTypeKey": f"{best['duration'] or DEFAULT_LOCK_DAYS}dayLock",
            "apr": best["apr"],
            "bonusKey": "lockedEarn",
        })

    channels.append({
        "channel": "Launchpool",
        "channelKey": "launchpool",
        "productTypeKey": "newCoinMining",
        "apr": LAUNCHPOOL_APR,
        "bonusKey": "estimatedPerBnb",
        "isEstimated": True,
    })
    channels.append({
        "channel": "BNB Vault",
        "channelKey": "bnbVault",
        "productTypeKey": "aggregatedPool",
        "apr": BNB_VAULT_APR,
        "bonusKey": "autoParticipate",
        "isEstimated": True,
    })
    return channels


class ExchangeYieldsMetric(Metric):
    name = "exchange_yields"
    empty_shape = {"flexible": [], "locked": []}

    def __init__(self, binance: BinanceToolkit, **kwargs: Any):
        super().__init__(**kwargs)
        self.binance = binance

    async def reconcile(self) -> Result:
        flexible_rows, locked_rows = await self._fan_out(
            self.binance.get_flexible_products,
            self.binance.get_locked_products,
        )
        if isinstance(flexible_rows, UpstreamUnavailable) and isinstance(locked_rows, UpstreamUnavailable):
            return Failed(ReconciliationFailure(
                self.name, f"{flexible_rows.message}; {locked_rows.message}", cause=flexible_rows
            ))

        reasons: List[str] = []
        if isinstance(flexible_rows, UpstreamUnavailable):
            reasons.append(f"flexible products unavailable ({flexible_rows.message})")
            flexible_rows = []
        if isinstance(locked_rows, UpstreamUnavailable):
            reasons.append(f"locked products unavailable ({locked_rows.message})")
            locked_rows = []

        flexible = [flexible_product(row) for row in flexible_rows]
        locked = [locked_product(row) for row in locked_rows]
        payload: Dict[str, Any] = {
            "flexible": flexible,
            "locked": locked,
            "channels": yield_channels(flexible, locked),
            "lastUpdated": self._timestamp(),
        }
        return outcome(payload, reasons)

    async def resolve(self) -> Dict[str, Any]:
        """Adds ``cached``: whether the payload is older than one second."""
        payload = await super().resolve()
        age = self.cache.age()
        return {**payload, "cached": age is not None and age > 1}
