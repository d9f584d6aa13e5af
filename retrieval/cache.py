"""Bounded FIFO cache for ranked query results. Prevents duplicate ranking work."""

import copy
import json
import logging
import time
from collections import OrderedDict
from dataclasses import replace
from threading import Lock
from typing import Callable, Hashable, Optional, Tuple

from retrieval.types import QueryContext, RankedResult

logger = logging.getLogger("tlc.cache")

DEFAULT_CAPACITY = 100

CacheKey = Tuple[str, str, int]


def make_cache_key(query: str, context: QueryContext, max_results: int) -> CacheKey:
    """(normalized query, serialized context, K). Raises on unserializable context."""
    normalized = (query or '').strip().lower()
    serialized = json.dumps(context.to_dict(), sort_keys=True)
    return (normalized, serialized, int(max_results))


def detach(result: RankedResult) -> RankedResult:
    """Copy whose topic list and analysis can be changed without touching the cache."""
    return replace(
        result,
        topics=list(result.topics),
        query_analysis=copy.deepcopy(result.query_analysis),
    )


class QueryCache:
    """
    Memoizes ranker results keyed by (query, context, K).

    Eviction is by insertion order: when full, exactly the single oldest
    inserted entry is dropped. Lookups do not refresh an entry's position.
    Callers always receive a detached copy of the stored result.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Cache capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: 'OrderedDict[Hashable, Tuple[RankedResult, float]]' = OrderedDict()
        self._lock = Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get_or_compute(
        self,
        query: str,
        context: QueryContext,
        max_results: int,
        compute: Callable[[], RankedResult],
    ) -> Tuple[RankedResult, bool]:
        """
        Return (result, was_hit).

        The whole check / compute / insert sequence runs under one lock so two
        callers missing on the same key do not both insert and evict.
        """
        try:
            key = make_cache_key(query, context, max_results)
        except (TypeError, ValueError) as e:
            logger.warning("Query not cacheable, computing directly: %s", e)
            return compute(), False

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self.hits += 1
                logger.debug("Cache hit: %r", key[0])
                return detach(entry[0]), True

            self.misses += 1
            result = compute()
            self._insert(key, result)
            return detach(result), False

    def _insert(self, key: Hashable, result: RankedResult) -> None:
        """Caller holds the lock. Failures here never reach the caller."""
        try:
            if key not in self._entries and len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug("Cache evicted oldest entry: %r", evicted[0])
            self._entries[key] = (result, time.time())
        except Exception:
            logger.exception("Cache write failed; result returned uncached")

    def get(self, query: str, context: QueryContext, max_results: int) -> Optional[RankedResult]:
        """Peek without computing. Returns None on miss."""
        try:
            key = make_cache_key(query, context, max_results)
        except (TypeError, ValueError):
            return None
        with self._lock:
            entry = self._entries.get(key)
        return detach(entry[0]) if entry is not None else None

    def __contains__(self, item: Tuple[str, QueryContext, int]) -> bool:
        query, context, max_results = item
        return self.get(query, context, max_results) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def stats(self) -> dict:
        return {
            'size': len(self),
            'capacity': self.capacity,
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
            'hit_rate': self.hit_rate(),
        }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
