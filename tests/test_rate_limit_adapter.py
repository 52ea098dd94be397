"""Unit tests for the cache-backed rate limiter adapter."""

from unittest.mock import Mock

import pytest

from bookexport.adapters.cache.in_memory import InMemoryTTLCache
from bookexport.adapters.rate_limit.cache_counter import CacheCounterRateLimiter


def _limiter(limit: int, window_seconds: int = 3600, clock: Mock | None = None):
    cache = InMemoryTTLCache(
        default_ttl_seconds=window_seconds,
        clock=clock or Mock(return_value=1000.0),
    )
    return CacheCounterRateLimiter(cache=cache, limit=limit, window_seconds=window_seconds), cache


def test_allows_up_to_limit() -> None:
    limiter, _ = _limiter(limit=3)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.count == 3
    assert result.remaining == 0


def test_blocks_when_over_limit_with_full_window_retry() -> None:
    limiter, _ = _limiter(limit=2, window_seconds=3600)

    limiter.consume("k")
    limiter.consume("k")

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.count == 3
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 3600


def test_blocked_requests_are_not_counted() -> None:
    limiter, cache = _limiter(limit=1)

    limiter.consume("k")
    limiter.consume("k")
    limiter.consume("k")

    assert cache.get("k") == 1


def test_every_allowed_request_restarts_the_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter, _ = _limiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    clock.return_value = 1050.0
    assert limiter.consume("k").allowed is True

    # 100s after the first request but only 50s after the last one
    clock.return_value = 1100.0
    assert limiter.consume("k").allowed is False

    # A whole idle window later the counter is gone
    clock.return_value = 1111.0
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.count == 1


def test_isolated_by_key() -> None:
    limiter, _ = _limiter(limit=1)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_zero_limit_blocks_everything() -> None:
    limiter, _ = _limiter(limit=0, window_seconds=60)

    result = limiter.consume("k")
    assert result.allowed is False
    assert result.retry_after_seconds == 60


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": -1, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        CacheCounterRateLimiter(cache=InMemoryTTLCache(), **kwargs)


def test_invalid_consume_args() -> None:
    limiter, _ = _limiter(limit=1)

    with pytest.raises(ValueError):
        limiter.consume("")
