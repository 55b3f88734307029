"""
Client-side data hooks with last-known-good fallback.

A ``DataHook`` fetches one API path, re-fetching only when its last success is
older than ``stale_seconds``. On terminal failure it returns the last success,
or else a static fallback literal, and logs the error. ``get()`` never raises:
this is the only place where errors are silently degraded.
"""

import asyncio
import copy
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from loguru import logger

__all__ = ["DataHook", "HookResult", "HookError"]


class HookError(Exception):
    """The API answered with an ``error`` body or an unusable payload."""


@dataclass
class HookResult:
    data: Any
    is_live: bool
    error: Optional[str] = None
    fetched_at: Optional[float] = None


class DataHook:
    """Fetch-with-fallback for one endpoint.

    Args:
        client: Async HTTP client with the API base URL configured
        path: Endpoint path, e.g. ``"/supply"``
        fallback: Literal returned when nothing has ever been fetched
        stale_seconds: Freshness window of the last success
        retries: Extra attempts after the first failure
        retry_delay: Seconds between attempts
        clock: Returns the current time in seconds
        transform: Maps the response body to the data the caller wants
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        fallback: Any,
        stale_seconds: float = 300,
        retries: int = 3,
        retry_delay: float = 1.0,
        clock: Optional[Callable[[], float]] = None,
        transform: Optional[Callable[[Any], Any]] = None,
    ):
        self.client = client
        self.path = path
        self.fallback = fallback
        self.stale_seconds = stale_seconds
        self.retries = retries
        self.retry_delay = retry_delay
        self._clock = clock or time.monotonic
        self._transform = transform
        self._last: Optional[HookResult] = None

    async def _fetch(self) -> Any:
        response = await self.client.get(self.path)
        body = response.json() if response.content else None
        if isinstance(body, dict) and body.get("error"):
            raise HookError(str(body["error"]))
        response.raise_for_status()
        if body is None:
            raise HookError("empty response")
        return self._transform(body) if self._transform else body

    async def get(self) -> HookResult:
        if self._last is not None and self._clock() - self._last.fetched_at < self.stale_seconds:
            return self._last

        error: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            if attempt:
                await asyncio.sleep(self.retry_delay)
            try:
                data = await self._fetch()
            except (httpx.HTTPError, HookError, ValueError, KeyError, TypeError) as e:
                error = e
                logger.debug(f"{self.path}: attempt {attempt + 1} failed: {e}")
                continue
            self._last = HookResult(data=data, is_live=True, fetched_at=self._clock())
            return self._last

        message = str(error) or type(error).__name__
        if self._last is not None:
            logger.warning(f"{self.path} unavailable, keeping last value: {message}")
            return HookResult(data=self._last.data, is_live=False, error=message, fetched_at=self._last.fetched_at)

        logger.warning(f"{self.path} unavailable, using fallback: {message}")
        return HookResult(data=copy.deepcopy(self.fallback), is_live=False, error=message)
