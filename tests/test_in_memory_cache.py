"""Unit tests for the in-memory TTL cache."""

import threading
from unittest.mock import Mock

import pytest

from bookexport.adapters.cache.in_memory import InMemoryTTLCache


def test_set_and_get_updates_hit_miss_counters() -> None:
    cache = InMemoryTTLCache(default_ttl_seconds=10)

    assert cache.get("missing") is None

    cache.set("key", 3)

    assert cache.get("key") == 3

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_expired_entry_is_evicted() -> None:
    clock = Mock(return_value=1000.0)
    cache = InMemoryTTLCache(default_ttl_seconds=5, clock=clock)
    cache.set("key", 1)

    clock.return_value = 1006.0

    assert cache.get("key") is None
    assert cache.stats()["evictions"] == 1


def test_per_entry_ttl_overrides_default() -> None:
    clock = Mock(return_value=1000.0)
    cache = InMemoryTTLCache(default_ttl_seconds=5, clock=clock)
    cache.set("short", 1)
    cache.set("long", 2, ttl_seconds=3600)

    clock.return_value = 1100.0

    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_set_restarts_expiry() -> None:
    clock = Mock(return_value=1000.0)
    cache = InMemoryTTLCache(default_ttl_seconds=60, clock=clock)
    cache.set("key", 1)

    clock.return_value = 1050.0
    cache.set("key", 2)

    clock.return_value = 1100.0
    assert cache.get("key") == 2


def test_lru_eviction_removes_least_recently_used() -> None:
    cache = InMemoryTTLCache(default_ttl_seconds=100, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)

    # Access "a" so that "b" becomes least recently used
    assert cache.get("a") == 1

    cache.set("c", 3)

    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert cache.get("b") is None


def test_delete_and_clear() -> None:
    cache = InMemoryTTLCache(default_ttl_seconds=10)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.delete("a")
    cache.delete("unknown")
    assert cache.get("a") is None

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0
    assert stats["evictions"] == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"default_ttl_seconds": 0},
        {"max_entries": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryTTLCache(**kwargs)


def test_thread_safety_under_concurrent_sets() -> None:
    cache = InMemoryTTLCache(default_ttl_seconds=30, max_entries=None)
    total_keys = 50

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", idx)

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats()["entries"] == total_keys
    assert cache.get("k-0") == 0
    assert cache.get("k-49") == 49
