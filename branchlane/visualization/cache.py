"""Layout memoization for rendering collaborators."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timezone
from typing import Dict, Optional, Sequence
import hashlib

from ..contracts.events import TimelineEvent, LayoutResult
from ..core.analyzer import analyze
from ..observability import LayoutObserver
from .config import CacheConfig


def _token(value: object) -> str:
    return f"{type(value).__name__}:{value!r}"


def fingerprint(events: Sequence[TimelineEvent]) -> str:
    """
    Content hash of everything the layout depends on.

    Titles are excluded: relabelling events never changes the layout.
    Timestamps are keyed in UTC so equal instants share a key.
    """
    digest = hashlib.sha256()
    for event in events:
        parents = ",".join(_token(p) for p in event.parent_ids or ())
        instant = event.timestamp.astimezone(timezone.utc).isoformat()
        digest.update(
            f"{_token(event.event_id)}|{instant}|{parents}\n".encode('utf-8')
        )
    return digest.hexdigest()


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters."""
    total_entries: int
    hit_count: int
    miss_count: int
    eviction_count: int
    hit_rate: float


class LayoutCache:
    """
    Cache of LayoutResult keyed by event fingerprint.

    Entries never expire on their own; a changed snapshot simply hashes to
    a new key. The oldest entry is evicted once max_entries is reached.
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        self._config = config or CacheConfig()
        self._cache: Dict[str, LayoutResult] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[LayoutResult]:
        result = self._cache.get(key)
        if result is None:
            self._misses += 1
            return None
        self._hits += 1
        return result

    def put(self, key: str, result: LayoutResult):
        if key not in self._cache and len(self._cache) >= self._config.max_entries:
            self._evict_oldest()
        self._cache[key] = result

    def get_or_analyze(
        self,
        events: Sequence[TimelineEvent],
        observer: Optional[LayoutObserver] = None
    ) -> LayoutResult:
        """Return the cached layout for this snapshot, analyzing on a miss."""
        key = fingerprint(events)
        cached = self.get(key)

        if observer:
            observer.cache_lookup(key, cached is not None)

        if cached is not None:
            return cached

        result = analyze(events, observer)
        self.put(key, result)
        return result

    def _evict_oldest(self):
        if not self._cache:
            return
        oldest_key = next(iter(self._cache))
        del self._cache[oldest_key]
        self._evictions += 1

    def invalidate(self, key: str):
        """Invalidate a cache entry."""
        if key in self._cache:
            del self._cache[key]

    def clear(self):
        """Clear all cache entries."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        return CacheStats(
            total_entries=len(self._cache),
            hit_count=self._hits,
            miss_count=self._misses,
            eviction_count=self._evictions,
            hit_rate=self._hits / total if total > 0 else 0.0
        )
