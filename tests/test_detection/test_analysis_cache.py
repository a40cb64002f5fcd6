"""Tests for the TTL + FIFO analysis cache."""

from __future__ import annotations

import threading

import pytest

from fisherman.core.models import AnalysisResult
from fisherman.detection.cache import (
    NO_CONTEXT,
    AnalysisCache,
    make_cache_key,
)


def _result(level: int = 0) -> AnalysisResult:
    return AnalysisResult(risk_level=level, timestamp=0.0)


@pytest.fixture()
def cache(clock) -> AnalysisCache:
    return AnalysisCache(ttl_seconds=300, max_size=1000, clock=clock)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class TestCacheKey:
    def test_without_context(self) -> None:
        assert make_cache_key("https://a.com") == f"https://a.com:{NO_CONTEXT}"

    def test_with_context(self) -> None:
        assert make_cache_key("https://a.com", 42) == "https://a.com:42"

    def test_contexts_are_distinct(self) -> None:
        assert make_cache_key("https://a.com", "1") != make_cache_key("https://a.com", "2")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    @pytest.mark.parametrize("size", [0, -1])
    def test_rejects_non_positive_size(self, size: int) -> None:
        with pytest.raises(ValueError, match="max_size"):
            AnalysisCache(max_size=size)

    def test_rejects_non_positive_ttl(self) -> None:
        with pytest.raises(ValueError, match="ttl_seconds"):
            AnalysisCache(ttl_seconds=0)

    def test_properties(self, cache: AnalysisCache) -> None:
        assert cache.ttl_seconds == 300.0
        assert cache.max_size == 1000
        assert len(cache) == 0


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


class TestExpiry:
    def test_hit_before_ttl(self, cache: AnalysisCache, clock) -> None:
        result = _result(3)
        cache.put("k", result)
        clock.advance(299)
        assert cache.get("k") is result
        assert "k" in cache

    def test_miss_at_ttl(self, cache: AnalysisCache, clock) -> None:
        cache.put("k", _result())
        clock.advance(300)
        assert cache.get("k") is None
        assert "k" not in cache

    def test_expired_entry_stays_until_purged(self, cache: AnalysisCache, clock) -> None:
        cache.put("k", _result())
        clock.advance(301)
        assert cache.get("k") is None
        assert len(cache) == 1

    def test_purge_removes_only_expired(self, cache: AnalysisCache, clock) -> None:
        cache.put("old-1", _result())
        cache.put("old-2", _result())
        clock.advance(200)
        cache.put("fresh", _result())
        clock.advance(150)

        assert cache.purge_expired() == 2
        assert len(cache) == 1
        assert cache.get("fresh") is not None

    def test_purge_on_empty_cache(self, cache: AnalysisCache) -> None:
        assert cache.purge_expired() == 0

    def test_put_refreshes_timestamp(self, cache: AnalysisCache, clock) -> None:
        cache.put("k", _result(1))
        clock.advance(200)
        replacement = _result(2)
        cache.put("k", replacement)
        clock.advance(200)
        assert cache.get("k") is replacement


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------


class TestCapacity:
    def test_overflow_evicts_exactly_the_oldest(self, cache: AnalysisCache) -> None:
        for i in range(1000):
            cache.put(f"url-{i}", _result())
        assert len(cache) == 1000

        cache.put("url-1000", _result())

        assert len(cache) == 1000
        assert cache.get("url-0") is None
        assert cache.get("url-1") is not None
        assert cache.get("url-1000") is not None

    def test_reads_do_not_refresh_position(self, clock) -> None:
        cache = AnalysisCache(max_size=2, clock=clock)
        cache.put("a", _result())
        cache.put("b", _result())
        cache.get("a")
        cache.put("c", _result())
        assert cache.get("a") is None
        assert cache.get("b") is not None

    def test_reput_existing_key_does_not_evict(self, clock) -> None:
        cache = AnalysisCache(max_size=2, clock=clock)
        cache.put("a", _result())
        cache.put("b", _result())
        cache.put("a", _result(5))
        assert len(cache) == 2
        assert cache.get("b") is not None
        assert cache.get("a").risk_level == 5

    def test_reput_moves_key_to_newest(self, clock) -> None:
        cache = AnalysisCache(max_size=2, clock=clock)
        cache.put("a", _result())
        cache.put("b", _result())
        cache.put("a", _result())
        cache.put("c", _result())
        assert cache.get("b") is None
        assert cache.get("a") is not None

    def test_clear(self, cache: AnalysisCache) -> None:
        cache.put("a", _result())
        cache.put("b", _result())
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is None

    def test_concurrent_puts_respect_capacity(self, clock) -> None:
        cache = AnalysisCache(max_size=50, clock=clock)

        def writer(prefix: str) -> None:
            for i in range(200):
                cache.put(f"{prefix}-{i}", _result())

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50
