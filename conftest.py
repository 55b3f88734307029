"""
Shared fixtures for the BNB Pulse test suite.

Upstream HTTP is never reached: toolkit tests route requests through
``httpx.MockTransport`` and metric tests use ``AsyncMock`` toolkits.
"""
from datetime import datetime, timezone

import pytest

from bnbpulse.config import ApiKeysConfig, HttpConfig, PulseConfig
from bnbpulse.metrics.cache import ResultCache


FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW


@pytest.fixture
def metric_kwargs(clock, fixed_now):
    """Single attempt, no delay, deterministic clocks."""
    return {
        "cache": ResultCache(300, clock=clock),
        "retry_attempts": 1,
        "retry_delay": 0,
        "now": fixed_now,
    }


@pytest.fixture
def pulse_config():
    return PulseConfig(
        api_keys=ApiKeysConfig(
            nodereal_api_key="test-nodereal-key",
            etherscan_api_key="test-etherscan-key",
            binance_api_key="test-binance-key",
            binance_api_secret="test-binance-secret",
            coingecko_api_key=None,
        ),
        http=HttpConfig(retry_attempts=1, retry_delay_seconds=0),
    )
