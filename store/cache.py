"""
In-memory result cache with TTL expiry and recency/frequency eviction.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    fingerprint: str
    payload: T
    timestamp: float
    hits: int = 0


class ResultCache(Generic[T]):
    """Memoizes computed values by fingerprint.

    Expiry is lazy: ``get`` drops an entry older than ``ttl`` seconds and counts
    the access as a miss.  Capacity is a hard ceiling: before inserting a new
    fingerprint into a full cache the single entry with the lowest
    ``hits * hit_weight_ms - age_ms`` score is evicted.  A hit refreshes the
    entry timestamp.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
        hit_weight_ms: float = 1000.0,
    ) -> None:
        if capacity < 1:
            raise ValueError("cache capacity must be at least 1")
        self.name = name
        self.ttl = float(ttl)
        self.capacity = int(capacity)
        self.hit_weight_ms = float(hit_weight_ms)
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.timestamp >= self.ttl

    def _score(self, entry: CacheEntry[T], now: float) -> float:
        age_ms = (now - entry.timestamp) * 1000.0
        return entry.hits * self.hit_weight_ms - age_ms

    def _evict_one(self) -> None:
        now = self._clock()
        victim = min(self._entries.values(), key=lambda e: self._score(e, now))
        del self._entries[victim.fingerprint]
        self._evictions += 1
        log.debug("%s cache evicted %s (hits=%d)", self.name, victim.fingerprint[:12], victim.hits)

    def get(self, fingerprint: str) -> Optional[T]:
        entry = self._entries.get(fingerprint)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if self._expired(entry, now):
            del self._entries[fingerprint]
            self._misses += 1
            log.debug("%s cache expired %s", self.name, fingerprint[:12])
            return None

        entry.hits += 1
        entry.timestamp = now
        self._hits += 1
        return entry.payload

    def set(self, fingerprint: str, value: T) -> None:
        if fingerprint not in self._entries:
            while len(self._entries) >= self.capacity:
                self._evict_one()
        self._entries[fingerprint] = CacheEntry(fingerprint, value, self._clock())

    def get_or_compute(self, fingerprint: str, factory: Callable[[], T]) -> T:
        cached = self.get(fingerprint)
        if cached is not None:
            return cached
        value = factory()
        self.set(fingerprint, value)
        return value

    def invalidate(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def invalidate_key(self, fingerprint: str) -> bool:
        return self._entries.pop(fingerprint, None) is not None

    def hit_rate(self) -> float:
        total = self._hits + self._misses
        if total == 0:
            return 0.0
        return self._hits / total * 100.0

    def get_stats(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "name": self.name,
            "size": len(self._entries),
            "capacity": self.capacity,
            "ttl_seconds": self.ttl,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "hit_rate": round(self.hit_rate(), 2),
            "entries": [
                {"key": e.fingerprint, "age_seconds": round(now - e.timestamp, 3), "hits": e.hits}
                for e in self._entries.values()
            ],
        }
