"""
Single-slot TTL cache owned by one metric.

The clock is injected so tests can move time without sleeping. Reads and
writes are not coordinated across concurrent requests: two cold requests may
both reconcile and both write, and the later write wins.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple

from loguru import logger


class ResultCache:
    """Holds the last successful payload of one metric.

    Args:
        ttl_seconds: Freshness window; 0 disables caching
        clock: Returns the current time in seconds (``time.monotonic`` by default)
        name: Used in log messages only
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None, name: str = "metric"):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._name = name
        self._entry: Optional[Tuple[Dict[str, Any], float]] = None

    def get(self) -> Optional[Dict[str, Any]]:
        """The stored payload if it is younger than the TTL, else None."""
        if self._entry is None or self.ttl_seconds <= 0:
            return None
        payload, stored_at = self._entry
        if self._clock() - stored_at < self.ttl_seconds:
            logger.debug(f"Cache hit for {self._name}")
            return payload
        return None

    def peek(self) -> Optional[Dict[str, Any]]:
        """The stored payload regardless of age."""
        return self._entry[0] if self._entry else None

    def set(self, payload: Dict[str, Any]) -> None:
        self._entry = (payload, self._clock())

    def clear(self) -> None:
        self._entry = None

    def age(self) -> Optional[float]:
        """Seconds since the last write, or None when empty."""
        if self._entry is None:
            return None
        return self._clock() - self._entry[1]
