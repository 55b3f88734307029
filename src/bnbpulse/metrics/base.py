"""
Base class for reconciled metrics.

A metric owns one ``ResultCache`` and turns upstream calls into one payload.
Subclasses implement ``reconcile()``; callers use ``resolve()``, which adds
caching and the stale-on-failure policy.

Retry policy lives here rather than in the transport: ``_call`` retries
``UpstreamUnavailable`` a fixed number of times with a fixed delay. Any other
exception, notably ``MissingCredentialsError``, propagates on the first try.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from loguru import logger

from bnbpulse.config import DEFAULT_TTL_SECONDS
from bnbpulse.exceptions import ReconciliationFailure, UpstreamUnavailable
from bnbpulse.metrics.cache import ResultCache
from bnbpulse.metrics.results import Failed, Result, UsedFallback

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Metric(ABC):
    """One reconciled dashboard metric.

    Args:
        cache: Result slot for this metric; one with the default TTL is
            created when omitted
        retry_attempts: Attempts per upstream call (1 to 3)
        retry_delay: Fixed delay between attempts, in seconds
        serve_stale_on_failure: Return the last good payload, whatever its
            age, when reconciliation fails
        now: Wall clock for ``lastUpdated`` fields
    """

    name: str = "metric"
    empty_shape: Dict[str, Any] = {}

    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        serve_stale_on_failure: bool = True,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.cache = cache or ResultCache(DEFAULT_TTL_SECONDS.get(self.name, 300), name=self.name)
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.serve_stale_on_failure = serve_stale_on_failure
        self._now = now or utc_now

    def _timestamp(self) -> str:
        return self._now().isoformat(timespec="milliseconds").replace("+00:00", "Z")

    async def _call(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Await ``factory()``, retrying upstream failures."""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return await factory()
            except UpstreamUnavailable as e:
                if attempt >= self.retry_attempts:
                    raise
                logger.warning(
                    f"{self.name}: attempt {attempt}/{self.retry_attempts} failed ({e.message}), retrying"
                )
                await asyncio.sleep(self.retry_delay)
        raise AssertionError("unreachable")

    async def _fan_out(self, *factories: Callable[[], Awaitable[Any]]) -> List[Union[Any, UpstreamUnavailable]]:
        """Run calls concurrently and wait for all of them to settle.

        Each slot holds the branch's value or its ``UpstreamUnavailable``.
        Any other exception is re-raised once every branch has settled.
        """
        results = await asyncio.gather(*(self._call(f) for f in factories), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, UpstreamUnavailable):
                raise result
        return list(results)

    async def _first_available(self, *factories: Callable[[], Awaitable[T]]) -> T:
        """Try sources in order, once each; the last failure is raised."""
        last_error: Optional[UpstreamUnavailable] = None
        for factory in factories:
            try:
                return await factory()
            except UpstreamUnavailable as e:
                logger.warning(f"{self.name}: {e.message}, trying next source")
                last_error = e
        if last_error is None:
            raise ValueError("no sources given")
        raise last_error

    @abstractmethod
    async def reconcile(self) -> Result:
        """Fetch and combine upstream data into one tagged result."""

    async def resolve(self) -> Dict[str, Any]:
        """The metric payload, from cache while fresh.

        Raises:
            MissingCredentialsError: If a required integration is unconfigured
            ReconciliationFailure: If reconciliation failed and no stale
                payload may be served
        """
        cached = self.cache.get()
        if cached is not None:
            return cached

        result = await self.reconcile()

        if isinstance(result, Failed):
            stale = self.cache.peek()
            if stale is not None and self.serve_stale_on_failure:
                logger.warning(f"{self.name}: serving stale payload after failure: {result.error.message}")
                return stale
            if isinstance(result.error, ReconciliationFailure):
                raise result.error
            raise ReconciliationFailure(self.name, result.error.message, cause=result.error)

        if isinstance(result, UsedFallback):
            logger.info(f"{self.name}: used fallback ({'; '.join(result.reasons)})")

        self.cache.set(result.value)
        return result.value

    def empty_payload(self) -> Dict[str, Any]:
        """Empty-shaped fields that accompany an error response."""
        return copy.deepcopy(self.empty_shape)
