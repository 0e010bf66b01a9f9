"""
Process-local TTL cache for generated content.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from shared.logging import get_logger


T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable cache slot; replaced wholesale on every set."""

    key: str
    payload: T
    expires_at: float


class TTLCache(Generic[T]):
    """Time-expiring key/value store with an LRU size bound.

    Expired entries read as absent. They are removed by ``sweep_expired``,
    by LRU eviction, or when the key is written again.
    """

    def __init__(self, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        self._lock = threading.Lock()
        self.logger = get_logger("gateway.cache")

        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[T]:
        """Return the payload if present and not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                self.misses += 1
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return entry.payload

    def set(self, key: str, payload: T, ttl_seconds: float) -> None:
        """Store ``payload`` under ``key`` for ``ttl_seconds``, replacing any prior entry."""
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        with self._lock:
            self._entries[key] = CacheEntry(key=key, payload=payload, expires_at=self._clock() + ttl_seconds)
            self._entries.move_to_end(key)

            while len(self._entries) > self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                self.evictions += 1
                self.logger.debug("Cache evict", key=evicted_key)

    def sweep_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            self.logger.info("Expired cache entries swept", removed=len(expired))
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        """Snapshot of cache counters."""
        with self._lock:
            total = self.hits + self.misses
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "hit_rate": round(self.hits / total, 3) if total else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
