"""Cache interface used for rate limit counters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractCache(ABC):
    """Key-value store with per-entry expiry."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under ``key``, or None if missing/expired."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        """Store ``value`` under ``key``.

        Args:
            key: Cache key.
            value: Value to store.
            ttl_seconds: Expiry relative to now; None uses the cache default.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError
