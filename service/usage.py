"""Passive usage counters. Recorded for later external analysis only."""

import time
from collections import Counter, deque
from threading import Lock
from typing import Any, Dict, Optional


class UsageTracker:
    """Bounded windows of retrieval timings/confidences and relationship feedback."""

    def __init__(self, window: int = 100):
        self._lock = Lock()
        self.total_queries = 0
        self.cache_hits = 0
        self._retrieval_times = deque(maxlen=window)
        self._confidences = deque(maxlen=window)
        self._relationship_usage = deque(maxlen=window)
        self._concept_lookups: Counter = Counter()

    def record_query(self, retrieval_time_ms: float, confidence: float, cache_hit: bool) -> None:
        with self._lock:
            self.total_queries += 1
            if cache_hit:
                self.cache_hits += 1
            self._retrieval_times.append(retrieval_time_ms)
            self._confidences.append(confidence)

    def record_concept_lookup(self, concept: str) -> None:
        with self._lock:
            self._concept_lookups[concept] += 1

    def concept_frequency(self, concept: str) -> int:
        with self._lock:
            return self._concept_lookups.get(concept, 0)

    def record_relationship_usage(self, relationship: Any, helpful: Optional[bool]) -> None:
        with self._lock:
            self._relationship_usage.append({
                'relationship': relationship,
                'helpful': bool(helpful),
                'timestamp': time.time(),
            })

    def query_stats(self) -> Dict[str, float]:
        with self._lock:
            times = list(self._retrieval_times)
            confs = list(self._confidences)
            total = self.total_queries
            hits = self.cache_hits
        return {
            'avg_retrieval_time_ms': sum(times) / len(times) if times else 0.0,
            'avg_confidence': sum(confs) / len(confs) if confs else 0.0,
            'cache_hit_rate': hits / total if total else 0.0,
            'total_queries': total,
        }

    def relationship_metrics(self) -> Dict[str, float]:
        with self._lock:
            usage = list(self._relationship_usage)
        if not usage:
            return {'usage_count': 0, 'helpfulness_rate': 0.0}
        helpful = sum(1 for u in usage if u['helpful'])
        return {'usage_count': len(usage), 'helpfulness_rate': helpful / len(usage)}
