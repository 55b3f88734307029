"""
Reconciled dashboard metrics.

Each metric fans out to its upstream toolkits, applies its named fallback
rules and returns a tagged result; ``Metric.resolve`` adds the per-metric
TTL cache.
"""

from .aster_tvl import AsterTvlMetric
from .backing import BackingMetric
from .base import Metric
from .burn import BurnInfoMetric, BurnRateMetric
from .cache import ResultCache
from .chain_metrics import ChainMetricsMetric
from .exchange_yields import ExchangeYieldsMetric
from .lp_locking import LpLockingMetric
from .registry import Toolkits, build_metrics
from .results import Failed, Ok, Result, UsedFallback, outcome
from .rules import ClassificationRule, DEFAULT_RULES, classify
from .supply import SupplyMetric
from .yields import YieldsMetric

__all__ = [
    "Metric",
    "ResultCache",
    "Ok",
    "UsedFallback",
    "Failed",
    "Result",
    "outcome",
    "ClassificationRule",
    "DEFAULT_RULES",
    "classify",
    "SupplyMetric",
    "BurnRateMetric",
    "BurnInfoMetric",
    "BackingMetric",
    "AsterTvlMetric",
    "YieldsMetric",
    "ExchangeYieldsMetric",
    "LpLockingMetric",
    "ChainMetricsMetric",
    "Toolkits",
    "build_metrics",
]
