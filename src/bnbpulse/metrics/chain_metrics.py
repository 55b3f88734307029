"""
Network activity for BSC (live) and opBNB (reference values).
"""

from typing import Any, Dict, List, Sequence

from bnbpulse.exceptions import UpstreamProtocolError, UpstreamUnavailable
from bnbpulse.metrics.base import Metric
from bnbpulse.metrics.results import Failed, Ok, Result
from bnbpulse.toolkits.data import NodeRealToolkit
from bnbpulse.toolkits.utils.normalizers import block_time_span, hex_to_int, round_to, wei_to_gwei

SAMPLE_BLOCKS = 10
SECONDS_PER_DAY = 86400
# Assumed share of daily transactions that come from distinct users
UNIQUE_USER_RATIO = 0.15

OPBNB_REFERENCE = {
    "network": "opBNB",
    "networkKey": "opBnbMainnet",
    "tps": 4500,
    "gasPrice": 0.001,
    "dau": 850000,
}


def transactions_per_second(blocks: Sequence[Dict[str, Any]]) -> float:
    span = block_time_span([block["timestamp"] for block in blocks])
    if span <= 0:
        return 0.0
    transactions = sum(
        len(block["transactions"]) for block in blocks if isinstance(block.get("transactions"), list)
    )
    return transactions / span


def estimated_dau(tps: float) -> int:
    return int(round_to(tps * SECONDS_PER_DAY * UNIQUE_USER_RATIO))


class ChainMetricsMetric(Metric):
    name = "chain_metrics"
    empty_shape = {"networks": []}

    def __init__(self, nodereal: NodeRealToolkit, sample_blocks: int = SAMPLE_BLOCKS, **kwargs: Any):
        super().__init__(**kwargs)
        self.nodereal = nodereal
        self.sample_blocks = sample_blocks

    async def reconcile(self) -> Result:
        try:
            head_hex, gas_hex = await self._call(
                lambda: self.nodereal.batch([("eth_blockNumber", []), ("eth_gasPrice", [])])
            )
            head = hex_to_int(head_hex)
            numbers: List[int] = [head - i for i in range(self.sample_blocks) if head - i >= 0]
            blocks = await self._call(lambda: self.nodereal.get_blocks(numbers))
            tps = transactions_per_second(blocks)
            gas_gwei = wei_to_gwei(gas_hex)
        except UpstreamUnavailable as e:
            return Failed(e)
        except (KeyError, TypeError, ValueError) as e:
            return Failed(UpstreamProtocolError("nodereal", "malformed block data", cause=e))

        payload: Dict[str, Any] = {
            "networks": [
                {
                    "network": "BSC",
                    "networkKey": "bscMainnet",
                    "tps": round_to(tps, 1),
                    "gasPrice": round_to(gas_gwei, 1),
                    "dau": estimated_dau(tps),
                },
                dict(OPBNB_REFERENCE),
            ],
            "lastUpdated": self._timestamp(),
        }
        return Ok(payload)
