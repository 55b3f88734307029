"""
Tests for the burn rate and quarterly burn info metrics.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from bnbpulse.exceptions import RpcError, TransportError
from bnbpulse.metrics.burn import (
    DEFAULT_BURN_RATE,
    BurnInfoMetric,
    BurnRateMetric,
    burn_rate_per_minute,
    next_quarterly_burn,
)
from bnbpulse.metrics.results import Failed, Ok, UsedFallback

WEI = 10**18


def reward(fee_wei, timestamp):
    return {"burnedFee": hex(fee_wei), "timestamp": hex(timestamp)}


def nodereal_mock(head="0x64", rewards=None):
    nodereal = Mock()
    nodereal.block_number = AsyncMock(return_value=head)
    if isinstance(rewards, Exception):
        nodereal.get_block_rewards = AsyncMock(side_effect=rewards)
    else:
        nodereal.get_block_rewards = AsyncMock(return_value=rewards)
    return nodereal


class TestBurnRateHelpers:
    def test_rate_per_minute(self):
        fees = [hex(WEI), hex(WEI)]
        timestamps = ["0x3c", "0x0"]

        assert burn_rate_per_minute(fees, timestamps) == 2.0

    def test_zero_span_is_zero(self):
        assert burn_rate_per_minute([hex(WEI)], ["0x10", "0x10"]) == 0.0
        assert burn_rate_per_minute([hex(WEI)], ["0x10"]) == 0.0


class TestNextQuarterlyBurn:
    @pytest.mark.parametrize(
        "now, expected",
        [
            (datetime(2024, 1, 14, tzinfo=timezone.utc), datetime(2024, 1, 15, tzinfo=timezone.utc)),
            (datetime(2024, 4, 15, 12, tzinfo=timezone.utc), datetime(2024, 7, 15, tzinfo=timezone.utc)),
            (datetime(2024, 5, 1, tzinfo=timezone.utc), datetime(2024, 7, 15, tzinfo=timezone.utc)),
            (datetime(2024, 12, 1, tzinfo=timezone.utc), datetime(2025, 1, 15, tzinfo=timezone.utc)),
        ],
    )
    def test_next_date(self, now, expected):
        assert next_quarterly_burn(now) == expected


class TestBurnRateMetric:
    """Test burn rate reconciliation."""

    @pytest.mark.asyncio
    async def test_rate_over_sample(self, metric_kwargs):
        rewards = [reward(WEI // 10, 1000 + 3 * (19 - i)) for i in range(20)]
        nodereal = nodereal_mock(rewards=rewards)
        metric = BurnRateMetric(nodereal, **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Ok)
        assert result.value["burnRate"] == pytest.approx(2.0 / 57 * 60)
        assert result.value["latestBurnedFee"] == 0.1
        assert result.value["sampleWindowSeconds"] == 57
        assert result.value["sampleBlocks"] == 20
        nodereal.get_block_rewards.assert_awaited_once_with(list(range(100, 80, -1)))

    @pytest.mark.asyncio
    async def test_identical_timestamps_use_default_rate(self, metric_kwargs):
        rewards = [reward(WEI, 5000) for _ in range(20)]
        metric = BurnRateMetric(nodereal_mock(rewards=rewards), **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, UsedFallback)
        assert result.value["burnRate"] == DEFAULT_BURN_RATE
        assert result.value["sampleWindowSeconds"] == 0

    @pytest.mark.asyncio
    async def test_sample_stops_at_genesis(self, metric_kwargs):
        nodereal = nodereal_mock(head="0x2", rewards=[reward(1, 10), reward(1, 7), reward(1, 4)])
        metric = BurnRateMetric(nodereal, **metric_kwargs)

        await metric.reconcile()

        nodereal.get_block_rewards.assert_awaited_once_with([2, 1, 0])

    @pytest.mark.asyncio
    async def test_rpc_failure(self, metric_kwargs):
        error = RpcError("nodereal", "nr_getBlockReward", "limit exceeded")
        metric = BurnRateMetric(nodereal_mock(rewards=error), **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Failed)
        assert result.error is error

    @pytest.mark.asyncio
    async def test_malformed_reward(self, metric_kwargs):
        metric = BurnRateMetric(nodereal_mock(rewards=[{"timestamp": "0x1"}]), **metric_kwargs)

        result = await metric.reconcile()

        assert isinstance(result, Failed)
        assert "malformed" in result.error.message


class TestBurnInfoMetric:
    """Test quarterly burn info."""

    @pytest.mark.asyncio
    async def test_payload(self, metric_kwargs):
        nodereal = Mock()
        nodereal.get_burn_info = AsyncMock(return_value={
            "nextBurnEstimatedAmount": hex(1_800_000 * WEI),
            "currentBurnProgress": "0x2d",
        })
        metric = BurnInfoMetric(nodereal, **metric_kwargs)

        payload = await metric.resolve()

        assert payload["nextBurnEstimatedAmount"] == 1_800_000.0
        assert payload["currentBurnProgress"] == 45.0
        assert payload["nextBurnDate"] == "2024-07-15T00:00:00+00:00"
        assert payload["lastUpdated"] == "2024-05-01T12:00:00.000Z"

    @pytest.mark.asyncio
    async def test_progress_clamped(self, metric_kwargs):
        nodereal = Mock()
        nodereal.get_burn_info = AsyncMock(return_value={
            "nextBurnEstimatedAmount": "0x0",
            "currentBurnProgress": "0xc8",
        })
        metric = BurnInfoMetric(nodereal, **metric_kwargs)

        payload = await metric.resolve()

        assert payload["currentBurnProgress"] == 100.0
        assert payload["nextBurnEstimatedAmount"] == 0.0

    @pytest.mark.asyncio
    async def test_upstream_failure(self, metric_kwargs):
        nodereal = Mock()
        nodereal.get_burn_info = AsyncMock(side_effect=TransportError("nodereal", status_code=500))
        metric = BurnInfoMetric(nodereal, **metric_kwargs)

        assert isinstance(await metric.reconcile(), Failed)
