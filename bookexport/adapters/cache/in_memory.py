"""Process-local key-value store with per-entry expiry.

Backs the export rate limiter: one small integer per client, rewritten on every
allowed export so its expiry slides forward. Entries are kept in recency order
and the least recently touched one is dropped once ``max_entries`` is reached.
Each worker process holds its own counters.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Callable, NamedTuple

from bookexport.adapters.cache.base import AbstractCache

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    value: Any
    expires_at: float


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0


class InMemoryTTLCache(AbstractCache):
    """Thread-safe TTL store, least-recently-used eviction past ``max_entries``.

    Args:
        default_ttl_seconds: Lifetime of entries written without ``ttl_seconds``.
        max_entries: Capacity; None for unbounded.
        clock: Returns the current time in seconds; ``time.time`` by default.
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: int = 3600,
        max_entries: int | None = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if default_ttl_seconds < 1:
            raise ValueError("default_ttl_seconds must be >= 1")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")

        self.default_ttl_seconds = default_ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._stats = CacheStats()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live(key, self._clock())
            if entry is None:
                self._stats.misses += 1
                logger.debug("cache.miss", extra={"cache_key": key})
                return None
            self._stats.hits += 1
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = _Entry(value, now + ttl)
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
                    self._stats.evictions += 1
        logger.debug("cache.set", extra={"cache_key": key, "ttl_s": ttl})

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry and zero the statistics."""
        with self._lock:
            self._entries.clear()
            self._stats = CacheStats()

    def stats(self) -> dict[str, int | None]:
        with self._lock:
            return {
                "default_ttl_seconds": self.default_ttl_seconds,
                "max_entries": self.max_entries,
                "entries": len(self._entries),
                **asdict(self._stats),
            }

    def _live(self, key: str, now: float) -> _Entry | None:
        """Entry for ``key`` if present and unexpired; expired ones are evicted."""
        entry = self._entries.get(key)
        if entry is not None and now >= entry.expires_at:
            del self._entries[key]
            self._stats.evictions += 1
            return None
        return entry

    def _purge_expired(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if now >= e.expires_at]:
            del self._entries[key]
            self._stats.evictions += 1
