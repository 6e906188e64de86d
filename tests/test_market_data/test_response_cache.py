"""Tests for the TTL response cache."""

import asyncio

import pytest

from coinchat.market_data.response_cache import ResponseCache, make_cache_key


class TestCacheKey:
    def test_independent_of_param_order(self) -> None:
        a = make_cache_key("/simple/price", {"ids": "bitcoin", "vs_currencies": "usd"})
        b = make_cache_key("/simple/price", {"vs_currencies": "usd", "ids": "bitcoin"})

        assert a == b

    def test_distinguishes_endpoints_and_values(self) -> None:
        base = make_cache_key("/coins/bitcoin", {"days": 7})

        assert base != make_cache_key("/coins/ethereum", {"days": 7})
        assert base != make_cache_key("/coins/bitcoin", {"days": 30})

    def test_none_params_are_ignored(self) -> None:
        assert make_cache_key("/global", {"page": None}) == make_cache_key("/global")


class TestGetPut:
    def test_put_then_get(self, cache: ResponseCache) -> None:
        cache.put("k", {"bitcoin": {"usd": 50000}})

        assert cache.get("k") == {"bitcoin": {"usd": 50000}}

    def test_missing_key(self, cache: ResponseCache) -> None:
        assert cache.get("missing") is None

    def test_put_overwrites(self, cache: ResponseCache) -> None:
        cache.put("k", 1)
        cache.put("k", 2)

        assert cache.get("k") == 2
        assert len(cache) == 1

    def test_entry_valid_just_before_ttl(self, cache: ResponseCache, clock) -> None:
        cache.put("k", "v")
        clock.advance(299.9)

        assert cache.get("k") == "v"

    def test_entry_expires_at_ttl_and_is_evicted(self, cache: ResponseCache, clock) -> None:
        cache.put("k", "v")
        clock.advance(300)

        assert cache.get("k") is None
        assert len(cache) == 0


class TestStatsAndCleanup:
    def test_stats(self, cache: ResponseCache, clock) -> None:
        cache.put("old", 1)
        clock.advance(301)
        cache.put("new", 2)

        stats = cache.stats()

        assert (stats.total, stats.valid, stats.expired) == (2, 1, 1)

    def test_cleanup_removes_only_expired(self, cache: ResponseCache, clock) -> None:
        cache.put("a", 1)
        cache.put("b", 2)
        clock.advance(301)
        cache.put("c", 3)

        removed = cache.cleanup()

        assert removed == 2
        assert cache.get("c") == 3
        assert len(cache) == 1

    def test_clear(self, cache: ResponseCache) -> None:
        cache.put("a", 1)
        cache.clear()

        assert len(cache) == 0


class TestSweepTask:
    @pytest.mark.asyncio
    async def test_background_sweep_removes_expired(self) -> None:
        cache = ResponseCache(ttl_seconds=0.01, cleanup_interval=0.02)
        cache.put("a", 1)

        await cache.start()
        await asyncio.sleep(0.1)
        await cache.stop()

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_stop_without_start(self, cache: ResponseCache) -> None:
        await cache.stop()
