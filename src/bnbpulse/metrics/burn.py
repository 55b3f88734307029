"""
BEP-95 burn rate and quarterly auto-burn info, both from NodeReal.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from bnbpulse.exceptions import UpstreamProtocolError, UpstreamUnavailable
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Ok, Result, outcome
from bnbpulse.toolkits.data import NodeRealToolkit
from bnbpulse.toolkits.utils.normalizers import (
    block_time_span,
    hex_to_int,
    parse_percentage,
    round_to,
    wei_to_token,
)

SAMPLE_BLOCKS = 20
DEFAULT_BURN_RATE = 1.5
QUARTERLY_BURN_MONTHS = (1, 4, 7, 10)
QUARTERLY_BURN_DAY = 15


def burn_rate_per_minute(burned_fees: Sequence[Any], timestamps: Sequence[Any]) -> float:
    """Burned BNB per minute across a block sample; 0 when the span is not positive."""
    span = block_time_span(timestamps)
    if span <= 0:
        return 0.0
    total = sum((wei_to_token(fee) for fee in burned_fees), Decimal(0))
    return float(total / span * 60)


def next_quarterly_burn(now: datetime) -> datetime:
    """The next 15th of January, April, July or October strictly after ``now``."""
    for month in QUARTERLY_BURN_MONTHS:
        candidate = now.replace(month=month, day=QUARTERLY_BURN_DAY, hour=0, minute=0, second=0, microsecond=0)
        if candidate > now:
            return candidate
    return now.replace(
        year=now.year + 1, month=QUARTERLY_BURN_MONTHS[0], day=QUARTERLY_BURN_DAY,
        hour=0, minute=0, second=0, microsecond=0,
    )


class BurnRateMetric(Metric):
    name = "burn_rate"
    empty_shape = {"burnRate": 0, "latestBurnedFee": 0}

    def __init__(self, nodereal: NodeRealToolkit, sample_blocks: int = SAMPLE_BLOCKS, **kwargs: Any):
        super().__init__(**kwargs)
        self.nodereal = nodereal
        self.sample_blocks = sample_blocks

    async def reconcile(self) -> Result:
        try:
            head = hex_to_int(await self._call(self.nodereal.block_number))
            numbers = [head - i for i in range(self.sample_blocks) if head - i >= 0]
            rewards = await self._call(lambda: self.nodereal.get_block_rewards(numbers))
            fees = [reward["burnedFee"] for reward in rewards]
            timestamps = [reward["timestamp"] for reward in rewards]
            latest_fee = wei_to_token(fees[0])
        except UpstreamUnavailable as e:
            return Failed(e)
        except (KeyError, IndexError, ValueError) as e:
            return Failed(UpstreamProtocolError("nodereal", "malformed block reward", cause=e))

        reasons: List[str] = []
        span = block_time_span(timestamps)
        rate = burn_rate_per_minute(fees, timestamps)
        if span <= 0:
            reasons.append(f"sample spans {span}s, using default rate")
            rate = DEFAULT_BURN_RATE

        payload: Dict[str, Any] = {
            "burnRate": rate,
            "latestBurnedFee": float(latest_fee),
            "sampleWindowSeconds": span,
            "sampleBlocks": len(rewards),
            "lastUpdated": self._timestamp(),
        }
        return outcome(payload, reasons)


class BurnInfoMetric(Metric):
    name = "burn_info"
    empty_shape = {"nextBurnEstimatedAmount": 0, "currentBurnProgress": 0}

    def __init__(self, nodereal: NodeRealToolkit, **kwargs: Any):
        super().__init__(**kwargs)
        self.nodereal = nodereal

    async def reconcile(self) -> Result:
        try:
            info = await self._call(self.nodereal.get_burn_info)
            amount = info.get("nextBurnEstimatedAmount")
            progress = info.get("currentBurnProgress")
            payload: Dict[str, Any] = {
                "nextBurnEstimatedAmount": round_to(wei_to_token(amount), 4) if amount else 0,
                "currentBurnProgress": parse_percentage(progress) if progress else 0,
                "nextBurnDate": next_quarterly_burn(self._now()).isoformat(),
                "lastUpdated": self._timestamp(),
            }
        except UpstreamUnavailable as e:
            return Failed(e)
        except ValueError as e:
            return Failed(UpstreamProtocolError("nodereal", "malformed burn info", cause=e))
        return Ok(payload)
