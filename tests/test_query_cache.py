"""Tests for retrieval/cache.py -- bounded FIFO result cache."""

import sys
import threading
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from retrieval.cache import QueryCache, make_cache_key
from retrieval.types import QueryContext, RankedResult


class _Counter:
    """compute() stand-in that returns a fresh result per call."""

    def __init__(self, label='r'):
        self.calls = 0
        self.label = label

    def __call__(self):
        self.calls += 1
        return RankedResult(reasoning=f"{self.label}-{self.calls}")


EMPTY = QueryContext()


# ============================================================================
# KEYS
# ============================================================================

def test_key_normalizes_query_text():
    assert make_cache_key("  Field Building ", EMPTY, 3) == make_cache_key("field building", EMPTY, 3)


def test_key_depends_on_context_and_k():
    base = make_cache_key("field", EMPTY, 3)
    assert make_cache_key("field", EMPTY, 5) != base
    assert make_cache_key("field", QueryContext(subject='science'), 3) != base


# ============================================================================
# HIT / MISS
# ============================================================================

def test_second_call_is_a_hit():
    cache = QueryCache(10)
    compute = _Counter()
    first, hit1 = cache.get_or_compute("field", EMPTY, 3, compute)
    second, hit2 = cache.get_or_compute("FIELD ", EMPTY, 3, compute)
    assert (hit1, hit2) == (False, True)
    assert second == first
    assert compute.calls == 1
    assert cache.stats()['hit_rate'] == pytest.approx(0.5)


def test_contains_and_get():
    cache = QueryCache(10)
    cache.get_or_compute("field", EMPTY, 3, _Counter())
    assert ("field", EMPTY, 3) in cache
    assert ("field", EMPTY, 4) not in cache
    assert cache.get("modeling", EMPTY, 3) is None


def test_compute_error_propagates_and_caches_nothing():
    cache = QueryCache(10)

    def boom():
        raise RuntimeError("ranker failed")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("field", EMPTY, 3, boom)
    assert len(cache) == 0


# ============================================================================
# EVICTION
# ============================================================================

def test_fifo_evicts_first_inserted_even_after_hit():
    """Lookups do not refresh position; the oldest insertion goes first."""
    cache = QueryCache(2)
    compute = _Counter()
    cache.get_or_compute("a", EMPTY, 3, compute)
    cache.get_or_compute("b", EMPTY, 3, compute)
    cache.get_or_compute("a", EMPTY, 3, compute)  # hit
    cache.get_or_compute("c", EMPTY, 3, compute)

    assert len(cache) == 2
    assert ("a", EMPTY, 3) not in cache
    assert ("b", EMPTY, 3) in cache
    assert cache.evictions == 1


def test_evicted_key_recomputes():
    cache = QueryCache(1)
    compute = _Counter()
    cache.get_or_compute("a", EMPTY, 3, compute)
    cache.get_or_compute("b", EMPTY, 3, compute)
    result, hit = cache.get_or_compute("a", EMPTY, 3, compute)
    assert hit is False
    assert compute.calls == 3
    assert result.reasoning == 'r-3'


def test_invalid_capacity():
    with pytest.raises(ValueError):
        QueryCache(0)


def test_clear():
    cache = QueryCache(5)
    cache.get_or_compute("a", EMPTY, 3, _Counter())
    cache.clear()
    assert len(cache) == 0


# ============================================================================
# CONCURRENCY
# ============================================================================

def test_concurrent_misses_compute_once():
    """Parallel callers on one key share a single computation."""
    cache = QueryCache(10)
    compute = _Counter()
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(cache.get_or_compute("field", EMPTY, 3, compute)[0])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert compute.calls == 1
    assert all(r == results[0] for r in results)


# ============================================================================
# ISOLATION
# ============================================================================

def test_returned_results_do_not_alias_the_stored_entry():
    """Changing a returned result leaves later hits untouched."""
    cache = QueryCache(10)

    def compute():
        return RankedResult(reasoning='ranked', query_analysis={'tokens': ['field']})

    first, _ = cache.get_or_compute("field", EMPTY, 3, compute)
    first.topics.append('junk')
    first.query_analysis['tokens'].append('junk')
    first.reasoning = 'changed'

    second, hit = cache.get_or_compute("field", EMPTY, 3, compute)
    assert hit is True
    assert second.topics == []
    assert second.query_analysis == {'tokens': ['field']}
    assert second.reasoning == 'ranked'
    assert cache.get("field", EMPTY, 3).query_analysis == {'tokens': ['field']}
