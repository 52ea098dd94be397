"""Rate limiting dependency for the book export route.

Exports are counted per client, identified by the X-Forwarded-For header set
by the front proxy. Requests that do not ask for a book (no ``page`` query
parameter) and requests without a forwarded address (local environments) are
not counted.

Counters live in a cache under ``ratelimit.session.<md5(ip)>``; every allowed
export restarts the client's window, and the 429 response asks the client to
wait for a whole window.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import HTTPException, Request, status

from bookexport.adapters.cache.in_memory import InMemoryTTLCache
from bookexport.adapters.rate_limit.base import AbstractRateLimiter
from bookexport.adapters.rate_limit.cache_counter import CacheCounterRateLimiter
from bookexport.core.config import settings

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "ratelimit.session."
FORWARDED_FOR_HEADER = "X-Forwarded-For"
PAGE_QUERY_PARAM = "page"


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance (and its counter cache) is cached in-module to preserve state
    across requests. If configuration changes (primarily in tests), the
    limiter is rebuilt.
    """

    global _limiter, _limiter_config

    window_seconds = settings.app.rate_limit_window_minutes * 60
    config = (
        settings.app.rate_limit_requests,
        window_seconds,
        settings.app.rate_limit_cache_max_entries,
    )

    if _limiter is None or _limiter_config != config:
        cache = InMemoryTTLCache(
            default_ttl_seconds=window_seconds,
            max_entries=settings.app.rate_limit_cache_max_entries,
        )
        _limiter = CacheCounterRateLimiter(
            cache=cache,
            limit=settings.app.rate_limit_requests,
            window_seconds=window_seconds,
        )
        _limiter_config = config

    return _limiter


def build_rate_limit_key(forwarded_for: str) -> str:
    """Cache key of a client's counter; the address itself is never stored."""
    return CACHE_KEY_PREFIX + hashlib.md5(forwarded_for.encode()).hexdigest()


def _is_enabled_for(request: Request) -> bool:
    if not settings.app.rate_limit_enabled:
        return False
    # A zero window expires counters immediately, so nothing is ever limited.
    if settings.app.rate_limit_window_minutes == 0:
        return False
    return bool(request.query_params.get(PAGE_QUERY_PARAM))


def _exceeded_message(window_minutes: int) -> str:
    return (
        "You have exceeded the rate limit. "
        f"Please wait {window_minutes} minutes before trying again."
    )


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency limiting book exports per forwarded client address.

    Raises:
        HTTPException: 429 Too Many Requests when the client exceeded its quota.
    """

    if not _is_enabled_for(request):
        logger.debug("rate_limit.not_enabled", extra={"request_path": request.url.path})
        return

    forwarded_for = request.headers.get(FORWARDED_FOR_HEADER, "")
    if not forwarded_for:
        logger.debug("rate_limit.no_forwarded_for", extra={"request_path": request.url.path})
        return

    key = build_rate_limit_key(forwarded_for)
    result = get_rate_limiter().consume(key)
    window_minutes = settings.app.rate_limit_window_minutes

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "cache_key": key,
                "count": result.count,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_min": window_minutes,
            },
        )
        return

    retry_after = result.retry_after_seconds or window_minutes * 60
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "cache_key": key,
            "count": result.count,
            "limit": result.limit,
            "window_min": window_minutes,
            "retry_after_s": retry_after,
        },
    )

    headers = {"Retry-After": str(retry_after)}
    if settings.app.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=_exceeded_message(window_minutes),
        headers=headers,
    )
