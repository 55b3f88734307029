"""
Supply and burn totals.

``totalBurned`` comes from exactly one source per call. A measured burn-address
balance outranks ``initialSupply - circulating``; the two are never averaged.
``burnedSource`` records which one was used.
"""

from typing import Any, Dict, List, Optional, Union

from bnbpulse.config import SupplyConfig
from bnbpulse.exceptions import UpstreamProtocolError, UpstreamUnavailable
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Result, outcome
from bnbpulse.toolkits.data import EtherscanToolkit
from bnbpulse.toolkits.utils.normalizers import clamp_percentage, round_to, wei_to_token, wei_to_whole_tokens

BURN_ADDRESS_SOURCE = "burn_address"
DERIVED_SOURCE = "derived"


def derive_burned(initial_supply: float, circulating: float) -> float:
    return initial_supply - circulating


def burn_percentage(total_burned: float, initial_supply: float) -> float:
    """Share of the initial supply burned, clamped to 0..100."""
    if initial_supply <= 0:
        return 0.0
    return clamp_percentage(round_to(total_burned / initial_supply * 100, 2))


class SupplyMetric(Metric):
    name = "supply"
    empty_shape = {
        "circulating": 0,
        "target": 0,
        "initialSupply": 0,
        "totalBurned": 0,
        "burnPercentage": 0,
    }

    def __init__(self, etherscan: EtherscanToolkit, supply_config: Optional[SupplyConfig] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.etherscan = etherscan
        self.supply_config = supply_config or SupplyConfig()

    @staticmethod
    def _measured_burn(balance: Any) -> Union[float, UpstreamUnavailable]:
        if isinstance(balance, UpstreamUnavailable):
            return balance
        try:
            return round_to(wei_to_token(balance), 2)
        except ValueError as e:
            return UpstreamProtocolError("etherscan", "malformed burn address balance", cause=e)

    async def reconcile(self) -> Result:
        burn_address = self.supply_config.burn_address
        factories = [self.etherscan.get_circulating_supply]
        if burn_address:
            factories.append(lambda: self.etherscan.get_balance(burn_address))

        results = await self._fan_out(*factories)
        circulating_wei = results[0]
        if isinstance(circulating_wei, UpstreamUnavailable):
            return Failed(circulating_wei)

        initial = self.supply_config.initial_supply
        try:
            circulating = wei_to_whole_tokens(circulating_wei)
        except ValueError as e:
            return Failed(UpstreamProtocolError("etherscan", "malformed circulating supply", cause=e))
        reasons: List[str] = []

        measured = self._measured_burn(results[1]) if burn_address else None
        if isinstance(measured, UpstreamUnavailable):
            reasons.append(f"burn address balance unavailable ({measured.message}), derived from supply")
            measured = None

        if measured is not None:
            total_burned = measured
            source = BURN_ADDRESS_SOURCE
        else:
            total_burned = derive_burned(initial, circulating)
            source = DERIVED_SOURCE

        payload: Dict[str, Any] = {
            "circulating": circulating,
            "target": self.supply_config.target_supply,
            "initialSupply": initial,
            "totalBurned": total_burned,
            "burnPercentage": burn_percentage(total_burned, initial),
            "burnedSource": source,
            "lastUpdated": self._timestamp(),
        }
        return outcome(payload, reasons)
