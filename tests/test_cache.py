"""Tests for the in-memory result cache."""

import asyncio

import pytest

from fitness_analytics.cache import (
    CachedResult,
    CacheKey,
    CacheStatus,
    ResultCache,
    compute_fingerprint,
)


KEY = CacheKey(user_id="user-1", kind="sleep_performance", subject="month")


class Counter:
    """Coroutine factory that counts how often it ran."""

    def __init__(self, value="result", delay: float = 0.0):
        self.value = value
        self.delay = delay
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.value


class TestGetOrCompute:
    """Tests for hits, misses and fingerprints."""

    @pytest.mark.asyncio
    async def test_miss_then_hit(self):
        cache = ResultCache("test")
        compute = Counter()

        first = await cache.get_or_compute(KEY, compute)
        second = await cache.get_or_compute(KEY, compute)

        assert first.was_cached is False
        assert second.was_cached is True
        assert second.value == "result"
        assert compute.calls == 1

    @pytest.mark.asyncio
    async def test_changed_fingerprint_recomputes(self):
        """Test new input data invalidates the stored entry."""
        cache = ResultCache("test")
        compute = Counter()

        await cache.get_or_compute(KEY, compute, fingerprint="a")
        again = await cache.get_or_compute(KEY, compute, fingerprint="a")
        changed = await cache.get_or_compute(KEY, compute, fingerprint="b")

        assert again.was_cached is True
        assert changed.was_cached is False
        assert compute.calls == 2

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        cache = ResultCache("test")
        other = CacheKey(user_id="user-1", kind="sleep_performance", subject="week")

        await cache.get_or_compute(KEY, Counter("month"))
        result = await cache.get_or_compute(other, Counter("week"))

        assert result.value == "week"
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_computation(self):
        """Test simultaneous requests for one key compute once."""
        cache = ResultCache("test")
        compute = Counter(delay=0.01)

        results = await asyncio.gather(*[cache.get_or_compute(KEY, compute) for _ in range(5)])

        assert compute.calls == 1
        assert sum(not r.was_cached for r in results) == 1
        assert all(r.value == "result" for r in results)

    @pytest.mark.asyncio
    async def test_exception_propagates_and_keeps_previous_entry(self):
        cache = ResultCache("test")
        await cache.get_or_compute(KEY, Counter("old"), fingerprint="a")

        async def failing():
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError):
            await cache.get_or_compute(KEY, failing, fingerprint="b")

        assert cache.peek(KEY) == "old"
        assert cache.status(KEY) is CacheStatus.CACHED
        assert cache.is_processing is False


class TestKeyLocks:
    """Tests that per-key locks do not outlive their callers."""

    @pytest.mark.asyncio
    async def test_released_after_each_call(self):
        """Test a long-lived cache over many distinct keys keeps no locks around."""
        cache = ResultCache("test")
        for i in range(50):
            key = CacheKey(user_id=f"user-{i}", kind="sleep_performance", subject="month")
            await cache.get_or_compute(key, Counter())
            await cache.get_or_compute(key, Counter())
        assert cache._key_locks == {}

        await cache.invalidate_user("user-0")
        await cache.clear()
        assert cache._key_locks == {}

    @pytest.mark.asyncio
    async def test_released_after_concurrent_callers(self):
        cache = ResultCache("test")
        compute = Counter(delay=0.01)

        await asyncio.gather(*[cache.get_or_compute(KEY, compute) for _ in range(5)])

        assert compute.calls == 1
        assert cache._key_locks == {}

    @pytest.mark.asyncio
    async def test_released_after_failure(self):
        cache = ResultCache("test")

        async def failing():
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError):
            await cache.get_or_compute(KEY, failing)

        assert cache._key_locks == {}
        assert (await cache.get_or_compute(KEY, Counter())).was_cached is False


class TestStatus:
    """Tests for status reporting."""

    @pytest.mark.asyncio
    async def test_idle_computing_cached(self):
        cache = ResultCache("test")
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow():
            started.set()
            await release.wait()
            return "done"

        assert cache.status(KEY) is CacheStatus.IDLE

        task = asyncio.create_task(cache.get_or_compute(KEY, slow))
        await started.wait()
        assert cache.status(KEY) is CacheStatus.COMPUTING
        assert cache.is_processing is True
        assert cache.keys_for("user-1") == [KEY]

        release.set()
        await task
        assert cache.status(KEY) is CacheStatus.CACHED
        assert cache.is_processing is False

    @pytest.mark.asyncio
    async def test_keys_for_filters_by_user(self):
        cache = ResultCache("test")
        await cache.get_or_compute(KEY, Counter())
        await cache.get_or_compute(CacheKey("user-2", "injury_risk"), Counter())

        assert cache.keys_for("user-1") == [KEY]
        assert cache.keys_for("nobody") == []


class TestInvalidation:
    """Tests for removing entries."""

    @pytest.mark.asyncio
    async def test_invalidate_key(self):
        cache = ResultCache("test")
        compute = Counter()
        await cache.get_or_compute(KEY, compute)

        assert await cache.invalidate(KEY) is True
        assert await cache.invalidate(KEY) is False
        result = await cache.get_or_compute(KEY, compute)
        assert result.was_cached is False
        assert compute.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_user(self):
        cache = ResultCache("test")
        await cache.get_or_compute(KEY, Counter())
        await cache.get_or_compute(CacheKey("user-1", "injury_risk"), Counter())
        await cache.get_or_compute(CacheKey("user-2", "injury_risk"), Counter())

        removed = await cache.invalidate_user("user-1")

        assert removed == 2
        assert len(cache) == 1
        assert cache.peek(CacheKey("user-2", "injury_risk")) == "result"

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = ResultCache("test")
        await cache.get_or_compute(KEY, Counter())
        await cache.clear()
        assert len(cache) == 0
        assert cache.peek(KEY) is None


class TestFingerprint:
    def test_order_independent(self):
        assert compute_fingerprint({"a": 1, "b": 2}) == compute_fingerprint({"b": 2, "a": 1})

    def test_sensitive_to_values(self):
        assert compute_fingerprint({"a": 1}) != compute_fingerprint({"a": 2})

    def test_non_json_values(self):
        """Test dates and other objects are serialized via str."""
        from datetime import date

        assert len(compute_fingerprint({"day": date(2024, 5, 1)})) == 64


class TestCachedResult:
    def test_to_dict_without_to_dict_value(self):
        assert CachedResult(value=3, was_cached=True).to_dict() == {"result": 3, "was_cached": True}
