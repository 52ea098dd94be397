"""Sliding-expiry request counter stored in a cache.

Each key holds one integer: the number of requests since the key was last
idle for a whole window. Every allowed request rewrites the counter with a
fresh expiry, so the window restarts on each hit; blocked requests are not
counted.
"""

from __future__ import annotations

import logging

from bookexport.adapters.cache.base import AbstractCache
from bookexport.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


class CacheCounterRateLimiter(AbstractRateLimiter):
    """Allow ``limit`` requests per key until the key stays idle for a window."""

    def __init__(self, *, cache: AbstractCache, limit: int, window_seconds: int) -> None:
        """Initialize the limiter.

        Args:
            cache: Store holding one counter per key.
            limit: Maximum number of requests before blocking.
            window_seconds: Counter expiry, restarted by every allowed request.

        Raises:
            ValueError: If limit is negative or window_seconds is not positive.
        """
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._cache = cache
        self._limit = limit
        self._window_seconds = window_seconds

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def consume(self, key: str) -> RateLimitResult:
        """Read, increment and store the counter for ``key``.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        cached = self._cache.get(key)
        count = int(cached) + 1 if cached is not None else 1
        logger.debug(
            "rate_limit.count",
            extra={"cache_key": key, "cache_hit": cached is not None, "count": count},
        )

        if count > self._limit:
            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                count=count,
                remaining=0,
                retry_after_seconds=self._window_seconds,
            )

        self._cache.set(key, count, ttl_seconds=self._window_seconds)
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            count=count,
            remaining=self._limit - count,
            retry_after_seconds=None,
        )
