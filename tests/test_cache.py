"""
Tests for the layout cache and its policies.

These tests cover:
- TTL expiry against a controllable clock
- Popularity-weighted eviction and its tie-breaking
- Capacity bound and hit-rate statistics
- Engine-level cache coherence (same object within TTL, fresh after clear)
- Sampled and full fingerprints
"""

import pytest

from gitlanes.graph.cache import (
    CacheEntry,
    LayoutCache,
    PopularityEviction,
    TTLExpiry,
    full_fingerprint,
    sampled_fingerprint,
)
from gitlanes.graph.layout import GraphLayoutEngine
from gitlanes.graph.types import Commit


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestTTLExpiry:
    """Test time-based expiry"""

    def test_entry_within_ttl_is_fresh(self):
        assert not TTLExpiry(60).is_expired(CacheEntry("v", timestamp=0), now=59.5)

    def test_entry_aged_exactly_ttl_is_stale(self):
        assert TTLExpiry(60).is_expired(CacheEntry("v", timestamp=0), now=60)

    def test_lookup_at_ttl_is_a_miss(self, clock):
        cache = LayoutCache(clock=clock)
        cache.put("k", 1)

        clock.now = 60
        assert cache.get("k") is None
        assert "k" not in cache

    def test_entry_past_ttl_is_stale(self):
        assert TTLExpiry(60).is_expired(CacheEntry("v", timestamp=0), now=60.5)

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            TTLExpiry(0)

    def test_expired_entry_is_removed_on_lookup(self, clock):
        cache = LayoutCache(clock=clock)
        cache.put("k", "v")

        clock.now = 61
        assert cache.get("k") is None
        assert "k" not in cache
        assert len(cache) == 0

    def test_put_after_expiry_replaces_entry(self, clock):
        cache = LayoutCache(clock=clock)
        cache.put("k", "old")
        clock.now = 100
        assert cache.get("k") is None

        cache.put("k", "new")
        assert cache.get("k") == "new"


class TestPopularityEviction:
    """Test the eviction score timestamp / max(1, access_count)"""

    def test_score(self):
        assert PopularityEviction.score(CacheEntry("v", timestamp=20, access_count=0)) == 20
        assert PopularityEviction.score(CacheEntry("v", timestamp=20, access_count=4)) == 5

    def test_lowest_score_is_evicted(self, clock):
        cache = LayoutCache(max_size=2, clock=clock)
        clock.now = 10
        cache.put("a", 1)
        clock.now = 20
        cache.put("b", 2)

        # b: 20 / 1 = 20, a: 10 / 3
        cache.get("a")
        cache.get("a")

        clock.now = 30
        cache.put("c", 3)

        assert "a" not in cache
        assert "b" in cache
        assert "c" in cache

    def test_new_entry_counts_its_creating_access(self, clock):
        cache = LayoutCache(clock=clock)
        cache.put("k", 1)
        assert cache._entries["k"].access_count == 1

        cache.get("k")
        assert cache._entries["k"].access_count == 2

    def test_single_hit_lowers_score(self, clock):
        cache = LayoutCache(max_size=2, clock=clock)
        clock.now = 15
        cache.put("b", 2)
        clock.now = 20
        cache.put("a", 1)

        # a: 20 / 2 = 10, b: 15 / 1 = 15
        cache.get("a")

        clock.now = 30
        cache.put("c", 3)

        assert list(cache._entries) == ["b", "c"]

    def test_ties_evict_first_inserted(self, clock):
        cache = LayoutCache(max_size=2, clock=clock)
        cache.put("first", 1)
        cache.put("second", 2)
        cache.put("third", 3)

        assert "first" not in cache
        assert "second" in cache

    def test_overwriting_existing_key_does_not_evict(self, clock):
        cache = LayoutCache(max_size=2, clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)

        assert len(cache) == 2
        assert cache.get("a") == 10

    def test_custom_policy(self, clock):
        class EvictNewest:
            def select_victim(self, entries):
                return list(entries)[-1]

        cache = LayoutCache(max_size=2, eviction=EvictNewest(), clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)

        assert list(cache._entries) == ["a", "c"]


class TestCacheBounds:
    """Test capacity and stats"""

    def test_size_never_exceeds_max(self, clock):
        cache = LayoutCache(max_size=5, clock=clock)
        for i in range(50):
            clock.now = i
            cache.put(f"k{i}", i)
            assert len(cache) <= 5

    def test_max_size_must_be_positive(self):
        with pytest.raises(ValueError):
            LayoutCache(max_size=0)

    def test_stats_empty(self):
        stats = LayoutCache().stats()

        assert stats.size == 0
        assert stats.max_size == 50
        assert stats.hit_rate == 0.0

    def test_hit_rate_after_miss_then_hit(self, clock):
        cache = LayoutCache(clock=clock)
        assert cache.get("k") is None
        cache.put("k", "v")
        cache.get("k")

        stats = cache.stats()
        assert stats.size == 1
        assert stats.hit_rate == pytest.approx(0.5)

    def test_hit_rate_counts_every_hit(self, clock):
        cache = LayoutCache(clock=clock)
        cache.put("k", "v")
        cache.get("k")
        cache.get("k")

        assert cache.stats().hit_rate == pytest.approx(2 / 3)

    def test_clear(self, clock):
        cache = LayoutCache(clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()

        assert len(cache) == 0
        assert cache.get("a") is None


class TestEngineCaching:
    """Test cache coherence through GraphLayoutEngine"""

    def test_same_input_returns_same_object(self, chain):
        engine = GraphLayoutEngine()
        commits = chain(1000)

        first = engine.calculate_layout(commits)
        second = engine.calculate_layout(commits)

        assert second is first
        assert engine.get_cache_stats().hit_rate > 0

    def test_equal_copy_of_input_hits_cache(self, chain):
        engine = GraphLayoutEngine()
        first = engine.calculate_layout(chain(20))
        assert engine.calculate_layout(chain(20)) is first

    def test_clear_cache_gives_equal_but_distinct_result(self, chain):
        engine = GraphLayoutEngine()
        commits = chain(30)

        first = engine.calculate_layout(commits)
        engine.clear_cache()
        second = engine.calculate_layout(commits)

        assert second is not first
        assert second == first
        assert engine.get_cache_stats().size == 1

    def test_expired_layout_is_recomputed(self, chain, clock):
        engine = GraphLayoutEngine(cache=LayoutCache(expiry=TTLExpiry(60), clock=clock))
        commits = chain(5)

        first = engine.calculate_layout(commits)
        clock.now = 120
        second = engine.calculate_layout(commits)

        assert second is not first
        assert engine.get_cache_stats().size == 1

    def test_engine_cache_is_bounded(self, chain):
        engine = GraphLayoutEngine(cache=LayoutCache(max_size=3))
        for i in range(10):
            engine.calculate_layout(chain(5, prefix=f"r{i}-"))

        assert engine.get_cache_stats().size == 3

    def test_engines_do_not_share_cache(self, chain):
        commits = chain(5)
        first = GraphLayoutEngine().calculate_layout(commits)
        assert GraphLayoutEngine().calculate_layout(commits) is not first


def _sequence(middle: str) -> list[Commit]:
    hashes = [f"h{i}" for i in range(30)]
    hashes[15] = middle
    return [Commit(hash=h) for h in hashes]


class TestFingerprints:
    """Test cache keys"""

    def test_sampled_format(self):
        commits = [Commit(hash=h) for h in ("a", "b", "c")]
        assert sampled_fingerprint(commits) == "3|a,b,c|a,b,c"

    def test_sampled_differs_by_length(self):
        commits = [Commit(hash=h) for h in ("a", "b", "c")]
        assert sampled_fingerprint(commits) != sampled_fingerprint(commits[:2])

    def test_sampled_collides_on_interior_change(self):
        assert sampled_fingerprint(_sequence("x")) == sampled_fingerprint(_sequence("y"))

    def test_full_detects_interior_change(self):
        assert full_fingerprint(_sequence("x")) != full_fingerprint(_sequence("y"))

    def test_full_detects_parent_change(self):
        before = [Commit(hash="a", parents=("b",)), Commit(hash="b")]
        after = [Commit(hash="a", parents=("c",)), Commit(hash="b")]
        assert full_fingerprint(before) != full_fingerprint(after)

    def test_full_is_stable(self):
        assert full_fingerprint(_sequence("x")) == full_fingerprint(_sequence("x"))
