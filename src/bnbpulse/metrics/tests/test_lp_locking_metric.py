"""
Tests for the LP locker and chain activity metrics.
"""
from unittest.mock import AsyncMock, Mock

import pytest

from bnbpulse.exceptions import RpcError, TransportError
from bnbpulse.metrics.chain_metrics import (
    OPBNB_REFERENCE,
    ChainMetricsMetric,
    estimated_dau,
    transactions_per_second,
)
from bnbpulse.metrics.lp_locking import LpLockingMetric, bsc_locked_value
from bnbpulse.metrics.results import Failed, Ok, UsedFallback


class TestBscLockedValue:
    """Test the BSC value lookup order."""

    def test_chain_series(self):
        protocol = {"chainTvls": {"BSC": {"tvl": [{"totalLiquidityUSD": 1}, {"totalLiquidityUSD": 5_000_000}]}}}

        assert bsc_locked_value(protocol) == 5_000_000

    def test_current_chain_tvl(self):
        assert bsc_locked_value({"currentChainTvls": {"BSC": 7.5}}) == 7.5
        assert bsc_locked_value({"currentChainTvls": {"Binance": 2_000_000}}) == 2_000_000

    def test_share_of_total(self):
        protocol = {"tvl": [{"totalLiquidityUSD": 10_000_000}]}

        assert bsc_locked_value(protocol) == pytest.approx(3_000_000)

    def test_nothing(self):
        assert bsc_locked_value({}) == 0.0

    def test_malformed_fields(self):
        protocol = {"chainTvls": {"BSC": [1, 2]}, "currentChainTvls": "n/a", "tvl": {"totalLiquidityUSD": 1}}

        assert bsc_locked_value(protocol) == 0.0
        assert bsc_locked_value({"chainTvls": ["BSC"], "currentChainTvls": {"BSC": 4.0}}) == 4.0


def defillama_by_slug(documents):
    async def get_protocol(slug):
        document = documents[slug]
        if isinstance(document, Exception):
            raise document
        return document

    defillama = Mock()
    defillama.get_protocol = AsyncMock(side_effect=get_protocol)
    return defillama


class TestLpLockingMetric:
    """Test locker aggregation and the reference fallback."""

    @pytest.mark.asyncio
    async def test_live_values_sorted(self, metric_kwargs):
        defillama = defillama_by_slug({
            "pinksale": {"chainTvls": {"BSC": {"tvl": [{"totalLiquidityUSD": 5_000_000.4}]}}},
            "uncx-network": {"currentChainTvls": {"Binance": 2_000_000}},
            "team-finance": {"tvl": [{"totalLiquidityUSD": 10_000_000}]},
        })
        metric = LpLockingMetric(defillama, **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Ok)
        assert result.value["source"] == "defillama"
        assert result.value["success"] is True
        assert [(e["platformKey"], e["lockedValue"]) for e in result.value["data"]] == [
            ("pinkSale", 5_000_000),
            ("teamFinance", 3_000_000),
            ("uncxNetwork", 2_000_000),
        ]

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_live_values(self, metric_kwargs):
        defillama = defillama_by_slug({
            "pinksale": TransportError("defillama", status_code=404),
            "uncx-network": {"currentChainTvls": {"BSC": 1_000}},
            "team-finance": {},
        })
        metric = LpLockingMetric(defillama, **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Ok)
        assert [e["platform"] for e in result.value["data"]] == ["UNCX Network"]

    @pytest.mark.asyncio
    async def test_reference_values_when_nothing_is_positive(self, metric_kwargs):
        defillama = defillama_by_slug({
            "pinksale": TransportError("defillama", status_code=500),
            "uncx-network": {},
            "team-finance": {"currentChainTvls": {"BSC": 0}},
        })
        metric = LpLockingMetric(defillama, **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, UsedFallback)
        assert result.value["source"] == "fallback"
        assert [e["lockedValue"] for e in result.value["data"]] == [224_750_000, 58_540_000, 42_300_000]
        assert result.value["data"][0]["lpPairs"] == 15000

    @pytest.mark.asyncio
    async def test_total_outage_keeps_last_live_payload(self, metric_kwargs, clock):
        documents = {
            "pinksale": {"currentChainTvls": {"BSC": 5_000_000}},
            "uncx-network": {},
            "team-finance": {},
        }
        metric = LpLockingMetric(defillama_by_slug(documents), **metric_kwargs)
        live = await metric.resolve()

        clock.advance(301)
        for slug in documents:
            documents[slug] = TransportError("defillama", status_code=503)
        after = await metric.resolve()

        assert after == live
        assert after["source"] == "defillama"
        assert [e["lockedValue"] for e in after["data"]] == [5_000_000]

    @pytest.mark.asyncio
    async def test_total_outage_on_cold_cache_uses_reference_values(self, metric_kwargs):
        defillama = defillama_by_slug({
            slug: TransportError("defillama", status_code=503)
            for slug in ("pinksale", "uncx-network", "team-finance")
        })
        metric = LpLockingMetric(defillama, **metric_kwargs)

        payload = await metric.resolve()

        assert payload["source"] == "fallback"
        assert len(payload["data"]) == 3


def block(timestamp, transactions):
    return {"timestamp": hex(timestamp), "transactions": [f"0x{i:x}" for i in range(transactions)]}


class TestChainMetricsHelpers:
    def test_tps(self):
        blocks = [block(1027, 30)] + [block(1000 + 3 * i, 30) for i in range(8, -1, -1)]

        assert transactions_per_second(blocks) == pytest.approx(300 / 27)

    def test_tps_zero_span(self):
        assert transactions_per_second([block(5, 10), block(5, 10)]) == 0.0

    def test_tps_ignores_non_list_transactions(self):
        blocks = [{"timestamp": "0x0", "transactions": 7}, {"timestamp": "0xa", "transactions": ["0x1"] * 20}]

        assert transactions_per_second(blocks) == 2.0

    def test_dau(self):
        assert estimated_dau(300 / 27) == 144000
        assert estimated_dau(0) == 0


class TestChainMetricsMetric:
    @pytest.mark.asyncio
    async def test_payload(self, metric_kwargs):
        nodereal = Mock()
        nodereal.batch = AsyncMock(return_value=["0xa", "0x3b9aca00"])
        nodereal.get_blocks = AsyncMock(
            return_value=[block(1000 + 3 * i, 30) for i in range(9, -1, -1)]
        )
        metric = ChainMetricsMetric(nodereal, **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Ok)
        bsc, opbnb = result.value["networks"]
        assert bsc == {"network": "BSC", "networkKey": "bscMainnet", "tps": 11.1, "gasPrice": 1.0, "dau": 144000}
        assert opbnb == OPBNB_REFERENCE
        nodereal.get_blocks.assert_awaited_once_with(list(range(10, 0, -1)))

    @pytest.mark.asyncio
    async def test_rpc_failure(self, metric_kwargs):
        nodereal = Mock()
        nodereal.batch = AsyncMock(side_effect=RpcError("nodereal", "eth_gasPrice", "rate limited"))
        metric = ChainMetricsMetric(nodereal, **metric_kwargs)

        assert isinstance(await metric.reconcile(), Failed)

    @pytest.mark.asyncio
    async def test_block_without_timestamp(self, metric_kwargs):
        nodereal = Mock()
        nodereal.batch = AsyncMock(return_value=["0x1", "0x1"])
        nodereal.get_blocks = AsyncMock(return_value=[{"transactions": []}])
        metric = ChainMetricsMetric(nodereal, **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Failed)
        assert "malformed" in result.error.message
