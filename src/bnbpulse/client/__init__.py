"""Python client for the BNB Pulse API with per-card fallbacks."""

from .fallbacks import (
    ASTER_TVL_FALLBACK,
    BACKING_FALLBACK,
    BURN_INFO_FALLBACK,
    BURN_RATE_FALLBACK,
    CHAIN_METRICS_FALLBACK,
    EXCHANGE_YIELDS_FALLBACK,
    LP_LOCKING_FALLBACK,
    SUPPLY_FALLBACK,
    YIELDS_FALLBACK,
    PulseClient,
)
from .hooks import DataHook, HookError, HookResult

__all__ = [
    "PulseClient",
    "DataHook",
    "HookError",
    "HookResult",
    "SUPPLY_FALLBACK",
    "BURN_RATE_FALLBACK",
    "BURN_INFO_FALLBACK",
    "CHAIN_METRICS_FALLBACK",
    "LP_LOCKING_FALLBACK",
    "EXCHANGE_YIELDS_FALLBACK",
    "YIELDS_FALLBACK",
    "BACKING_FALLBACK",
    "ASTER_TVL_FALLBACK",
]
