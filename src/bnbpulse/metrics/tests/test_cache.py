"""
Tests for the single-slot metric cache.
"""
from bnbpulse.metrics.cache import ResultCache


class TestResultCache:
    """Test TTL behaviour against an injected clock."""

    def test_empty_cache(self, clock):
        cache = ResultCache(60, clock=clock)

        assert cache.get() is None
        assert cache.peek() is None
        assert cache.age() is None

    def test_returns_same_object_within_ttl(self, clock):
        cache = ResultCache(60, clock=clock)
        payload = {"circulating": 1}
        cache.set(payload)

        clock.advance(59.9)

        assert cache.get() is payload

    def test_expires_at_ttl(self, clock):
        cache = ResultCache(60, clock=clock)
        cache.set({"circulating": 1})

        clock.advance(60)

        assert cache.get() is None
        assert cache.peek() == {"circulating": 1}

    def test_zero_ttl_disables_reads(self, clock):
        cache = ResultCache(0, clock=clock)
        cache.set({"value": 1})

        assert cache.get() is None
        assert cache.peek() == {"value": 1}

    def test_later_write_wins(self, clock):
        cache = ResultCache(60, clock=clock)
        cache.set({"value": 1})
        clock.advance(10)
        cache.set({"value": 2})

        assert cache.get() == {"value": 2}
        assert cache.age() == 0

    def test_age_and_clear(self, clock):
        cache = ResultCache(60, clock=clock)
        cache.set({"value": 1})
        clock.advance(12.5)

        assert cache.age() == 12.5

        cache.clear()
        assert cache.peek() is None
