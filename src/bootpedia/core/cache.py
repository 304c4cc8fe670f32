"""
Image URL cache with TTL expiry.

Resolved image URLs are signed by the blob store and stay valid for a while,
so the resolver keeps them in an ``ImageUrlCache``. The cache is an explicit
object rather than module state: every resolver gets its own instance (or
shares one deliberately), and tests build fresh ones with a fake clock.

Architecture:
    ::

        ImageUrlCache
        ├── get(identifier)        → CachedImageUrl | None   (expired → None, evicted)
        ├── put(identifier, url)   → CachedImageUrl          (expires_at = now + ttl)
        ├── delete(identifier)
        ├── exists(identifier)     → bool
        ├── sweep_expired()        → int removed
        ├── stats()                → CacheStats
        └── clear() / size()

Features:
    - **Lazy expiry:** entries observed at or after ``expires_at`` are dropped
    - **Maintenance sweep:** ``sweep_expired`` for periodic cleanup
    - **Bounded:** least-recently-used eviction past ``max_size``
    - **Injectable clock:** ``clock`` returns epoch seconds

Examples:
    >>> cache = ImageUrlCache(ttl_seconds=1800)
    >>> entry = cache.put("cover.png", "https://cdn.example/cover.png")
    >>> entry.expires_at - entry.created_at
    1800.0
    >>> cache.get("cover.png").url
    'https://cdn.example/cover.png'

Tags:
    cache, ttl, image-url, in-memory, bootpedia
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_TTL_SECONDS = 30 * 60


@dataclass(frozen=True)
class CachedImageUrl:
    """One cached resolution. Times are epoch seconds."""

    url: str
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache occupancy."""

    total_cached: int
    expired: int
    estimated_size_bytes: int


class ImageUrlCache:
    """Bounded in-memory cache of image URLs with a fixed TTL.

    Attributes:
        ttl_seconds: Lifetime of every entry.
        max_size: Maximum entries before LRU eviction.

    Example:
        cache = ImageUrlCache(ttl_seconds=600, clock=fake_clock)
        cache.put("hero.jpg", url)
        cache.sweep_expired()
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = 10_000,
        entry_size_bytes: int = 1024,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._store: OrderedDict[str, CachedImageUrl] = OrderedDict()
        self._ttl = float(ttl_seconds)
        self._max_size = max_size
        self._entry_size = entry_size_bytes
        self._clock = clock

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def now(self) -> float:
        return self._clock()

    def get(self, identifier: str) -> CachedImageUrl | None:
        """Return the live entry for ``identifier``, dropping it if expired."""
        entry = self._store.get(identifier)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            self.delete(identifier)
            return None

        self._store.move_to_end(identifier)
        return entry

    def put(self, identifier: str, url: str) -> CachedImageUrl:
        """Store ``url`` for ``identifier`` with ``expires_at = now + ttl``."""
        now = self._clock()
        entry = CachedImageUrl(url=url, created_at=now, expires_at=now + self._ttl)

        if identifier not in self._store and len(self._store) >= self._max_size:
            self._store.popitem(last=False)

        self._store[identifier] = entry
        self._store.move_to_end(identifier)
        return entry

    def delete(self, identifier: str) -> None:
        """Remove an entry. No-op if absent."""
        self._store.pop(identifier, None)

    def exists(self, identifier: str) -> bool:
        """Check if a live (non-expired) entry exists."""
        return self.get(identifier) is not None

    def sweep_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        return len(expired)

    def stats(self) -> CacheStats:
        """Count entries, expired entries and an approximate memory footprint."""
        now = self._clock()
        expired = sum(1 for entry in self._store.values() if entry.is_expired(now))
        return CacheStats(
            total_cached=len(self._store),
            expired=expired,
            estimated_size_bytes=len(self._store) * self._entry_size,
        )

    def clear(self) -> None:
        """Remove all entries."""
        self._store.clear()

    def size(self) -> int:
        """Return current number of entries, expired ones included."""
        return len(self._store)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self.exists(identifier)


__all__ = ["CacheStats", "CachedImageUrl", "DEFAULT_TTL_SECONDS", "ImageUrlCache"]
