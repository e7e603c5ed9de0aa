"""Unit tests for TimedCache expiry with an injected clock."""
from datetime import datetime, timedelta, timezone

import pytest

from powerratings.utils.cache import TimedCache


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class TestTimedCache:
    """Test suite for TimedCache."""

    @pytest.mark.asyncio
    async def test_fresh_entry_is_returned(self):
        """Should return a value until the TTL elapses."""
        clock = FakeClock()
        cache = TimedCache(ttl_seconds=600, clock=clock)

        await cache.set("odds", [1, 2])
        clock.advance(599)

        assert await cache.get("odds") == [1, 2]

    @pytest.mark.asyncio
    async def test_expired_entry_is_evicted(self):
        """Should drop an entry once it is ttl seconds old."""
        clock = FakeClock()
        cache = TimedCache(ttl_seconds=600, clock=clock)

        await cache.set("odds", [1, 2])
        clock.advance(600)

        assert await cache.get("odds") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_empty_list_is_a_hit(self):
        """Should distinguish a cached empty value from a miss."""
        cache = TimedCache(ttl_seconds=60)

        await cache.set("board", [])

        assert await cache.get("board") == []
        assert await cache.get("other") is None

    @pytest.mark.asyncio
    async def test_stats_and_clear(self):
        """Should report fresh entries and empty on clear."""
        clock = FakeClock()
        cache = TimedCache(ttl_seconds=60, clock=clock)
        await cache.set("a", 1)
        clock.advance(120)
        await cache.set("b", 2)

        assert cache.stats() == {"entries": 2, "fresh": 1, "ttl_seconds": 60.0}

        await cache.clear()
        assert len(cache) == 0
