"""
Tagged reconciliation results.

Every metric's ``reconcile()`` returns exactly one of:

- ``Ok(value)``: computed from live upstream data
- ``UsedFallback(value, reasons)``: computed, but at least one named fallback
  rule replaced a failed or missing branch
- ``Failed(error)``: no usable value
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from bnbpulse.exceptions import PulseError


@dataclass(frozen=True)
class Ok:
    value: Dict[str, Any]


@dataclass(frozen=True)
class UsedFallback:
    value: Dict[str, Any]
    reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Failed:
    error: PulseError


Result = Union[Ok, UsedFallback, Failed]


def outcome(value: Dict[str, Any], reasons: List[str]) -> Union[Ok, UsedFallback]:
    """``Ok`` when no fallback rule fired, else ``UsedFallback``."""
    if reasons:
        return UsedFallback(value, list(reasons))
    return Ok(value)
