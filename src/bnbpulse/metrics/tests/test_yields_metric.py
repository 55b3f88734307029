"""
Tests for the DeFi yield listing and the Binance Simple Earn yields.
"""
from unittest.mock import AsyncMock, Mock

import pytest

from bnbpulse.exceptions import (
    MissingCredentialsError,
    ReconciliationFailure,
    TransportError,
)
from bnbpulse.metrics.exchange_yields import (
    ExchangeYieldsMetric,
    flexible_product,
    locked_product,
    yield_channels,
)
from bnbpulse.metrics.results import Failed, Ok, UsedFallback
from bnbpulse.metrics.rules import DEGEN_RULE, STABLE_RULE, STRUCTURED_RULE
from bnbpulse.metrics.yields import YieldsMetric, is_bnb_pool, summarize_pools


def pool(project, symbol, tvl, apy, chain="BSC", name=None):
    return {
        "project": project,
        "symbol": symbol,
        "tvlUsd": tvl,
        "apy": apy,
        "chain": chain,
        "pool": name or f"{project}-{symbol}",
    }


class TestPoolFilter:
    def test_bsc_bnb_pool_above_floor(self):
        assert is_bnb_pool(pool("venus", "BNB", 500_000, 3.0))

    @pytest.mark.parametrize(
        "candidate",
        [
            pool("venus", "BNB", 50_000, 3.0),
            pool("venus", "BNB", 500_000, 3.0, chain="Ethereum"),
            pool("venus", "USDT", 500_000, 3.0),
        ],
    )
    def test_rejected(self, candidate):
        assert not is_bnb_pool(candidate)


class TestSummarizePools:
    """Test filtering, classification and ranking."""

    def test_tvl_floor_and_apy_order(self):
        raw = [
            pool("kinza", "BNB", 50_000, 50.0),
            pool("venus", "BNB", 500_000, 3.0),
            pool("lista-lending", "slisBNB", 2_000_000, 5.0),
        ]

        summary = summarize_pools(raw)

        stable = summary["pools"]["stable"]
        assert [p["project"] for p in stable] == ["lista-lending", "venus"]
        assert [p["apy"] for p in stable] == [5.0, 3.0]
        assert summary["summary"]["totalPools"] == 2
        assert summary["summary"]["topYield"] == {"project": "lista-lending", "symbol": "slisBNB", "apy": 5.0}
        assert summary["summary"]["avgStableApy"] == 4.0

    def test_categories(self):
        raw = [
            pool("pancakeswap-amm-v3", "BNB-USDT LP", 2_000_000, 12.0),
            pool("tranchess", "BNB", 2_000_000, 9.0),
            pool("venus", "BNB", 2_000_000, 3.0),
        ]

        grouped = summarize_pools(raw)["pools"]

        assert [p["project"] for p in grouped["degen"]] == ["pancakeswap-amm-v3"]
        assert [p["project"] for p in grouped["structured"]] == ["tranchess"]
        assert [p["project"] for p in grouped["stable"]] == ["venus"]
        assert grouped["degen"][0]["category"] == "degen"

    def test_missing_apy_counts_as_zero(self):
        raw = [pool("venus", "BNB", 2_000_000, None), pool("kinza", "BNB", 2_000_000, 1.0)]

        stable = summarize_pools(raw)["pools"]["stable"]

        assert [p["apy"] for p in stable] == [1.0, 0.0]

    def test_per_category_cap(self):
        raw = [pool("venus", "BNB", 1_000_000, float(apy), name=f"p{apy}") for apy in range(12)]

        summary = summarize_pools(raw)

        assert len(summary["pools"]["stable"]) == 8
        assert summary["pools"]["stable"][0]["apy"] == 11.0
        assert summary["summary"]["totalPools"] == 12

    def test_no_pools(self):
        summary = summarize_pools([])

        assert summary["summary"] == {"totalPools": 0, "topYield": None, "avgStableApy": 0}

    def test_custom_rule_order(self):
        raw = [pool("venus", "BNB-USDT", 2_000_000, 4.0)]

        default = summarize_pools(raw)["pools"]
        reordered = summarize_pools(raw, rules=(DEGEN_RULE, STABLE_RULE, STRUCTURED_RULE))["pools"]

        assert len(default["stable"]) == 1
        assert len(reordered["degen"]) == 1


class TestYieldsMetric:
    @pytest.mark.asyncio
    async def test_payload(self, metric_kwargs):
        defillama = Mock()
        defillama.get_yield_pools = AsyncMock(return_value=[pool("venus", "BNB", 2_000_000, 3.0)])
        metric = YieldsMetric(defillama, **metric_kwargs)

        payload = await metric.resolve()

        assert payload["summary"]["totalPools"] == 1
        assert payload["lastUpdated"] == "2024-05-01T12:00:00.000Z"

    @pytest.mark.asyncio
    async def test_upstream_failure(self, metric_kwargs):
        defillama = Mock()
        defillama.get_yield_pools = AsyncMock(side_effect=TransportError("defillama", status_code=500))
        metric = YieldsMetric(defillama, **metric_kwargs)

        assert isinstance(await metric.reconcile(), Failed)


FLEXIBLE_ROWS = [
    {
        "asset": "BNB",
        "latestAnnualPercentageRate": "0.025",
        "tierAnnualPercentageRate": {"0-5BNB": "0.01"},
        "minPurchaseAmount": "0.0001",
        "status": "PURCHASING",
        "canPurchase": True,
    },
]

LOCKED_ROWS = [
    {
        "projectId": "BNB*60",
        "detail": {"asset": "BNB", "rewardAsset": "BNB", "duration": 60, "apr": "0.05", "status": "PURCHASING"},
        "quota": {"minimum": "0.01"},
    },
    {
        "projectId": "BNB*120",
        "detail": {"asset": "BNB", "rewardAsset": "BNB", "duration": 120, "apr": "0.08", "status": "PURCHASING"},
        "quota": {"minimum": "0.1"},
    },
]


def binance_mock(flexible=FLEXIBLE_ROWS, locked=LOCKED_ROWS):
    binance = Mock()
    for attr, value in (("get_flexible_products", flexible), ("get_locked_products", locked)):
        if isinstance(value, Exception):
            setattr(binance, attr, AsyncMock(side_effect=value))
        else:
            setattr(binance, attr, AsyncMock(return_value=value))
    return binance


class TestExchangeYieldHelpers:
    def test_flexible_product(self):
        product = flexible_product(FLEXIBLE_ROWS[0])

        assert product["apr"] == 2.5
        assert product["productType"] == "flexible"
        assert product["minAmount"] == "0.0001"

    def test_locked_product_reads_nested_detail(self):
        product = locked_product(LOCKED_ROWS[0])

        assert product["asset"] == "BNB"
        assert product["apr"] == 5.0
        assert product["duration"] == 60
        assert product["minAmount"] == "0.01"

    def test_locked_product_with_malformed_quota(self):
        product = locked_product({"detail": {"asset": "BNB", "minPurchaseAmount": "0.5"}, "quota": "0.01"})

        assert product["minAmount"] == "0.5"

    def test_channels_pick_best_locked_product(self):
        flexible = [flexible_product(row) for row in FLEXIBLE_ROWS]
        locked = [locked_product(row) for row in LOCKED_ROWS]

        channels = yield_channels(flexible, locked)

        assert [c["channelKey"] for c in channels] == [
            "simpleEarnFlexible", "simpleEarnLocked", "launchpool", "bnbVault",
        ]
        assert channels[1]["productTypeKey"] == "120dayLock"
        assert channels[1]["apr"] == 8.0
        assert channels[2]["isEstimated"] is True

    def test_channels_without_products(self):
        channels = yield_channels([], [])

        assert [c["channelKey"] for c in channels] == ["launchpool", "bnbVault"]


class TestExchangeYieldsMetric:
    """Test the two-branch Simple Earn fetch."""

    @pytest.mark.asyncio
    async def test_both_lists(self, metric_kwargs):
        metric = ExchangeYieldsMetric(binance_mock(), **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Ok)
        assert len(result.value["flexible"]) == 1
        assert len(result.value["locked"]) == 2
        assert len(result.value["channels"]) == 4

    @pytest.mark.asyncio
    async def test_one_list_failing(self, metric_kwargs):
        metric = ExchangeYieldsMetric(
            binance_mock(locked=TransportError("binance", status_code=503)), **metric_kwargs
        )

        result = await metric.reconcile()

        assert isinstance(result, UsedFallback)
        assert result.value["locked"] == []
        assert [c["channelKey"] for c in result.value["channels"]] == [
            "simpleEarnFlexible", "launchpool", "bnbVault",
        ]

    @pytest.mark.asyncio
    async def test_both_lists_failing(self, metric_kwargs):
        metric = ExchangeYieldsMetric(
            binance_mock(
                flexible=TransportError("binance", status_code=503),
                locked=TransportError("binance", status_code=503),
            ),
            **metric_kwargs,
        )

        result = await metric.reconcile()

        assert isinstance(result, Failed)
        assert isinstance(result.error, ReconciliationFailure)
        with pytest.raises(ReconciliationFailure):
            await metric.resolve()

    @pytest.mark.asyncio
    async def test_missing_credentials_propagate(self, metric_kwargs):
        error = MissingCredentialsError("binance", ["api_key", "api_secret"])
        metric = ExchangeYieldsMetric(binance_mock(flexible=error, locked=error), **metric_kwargs)

        with pytest.raises(MissingCredentialsError):
            await metric.resolve()

    @pytest.mark.asyncio
    async def test_cached_flag(self, metric_kwargs, clock):
        metric = ExchangeYieldsMetric(binance_mock(), **metric_kwargs)

        fresh = await metric.resolve()
        clock.advance(5)
        cached = await metric.resolve()

        assert fresh["cached"] is False
        assert cached["cached"] is True
        assert metric.binance.get_flexible_products.await_count == 1
