# apps/api/tests/test_cache.py
import asyncio

import pytest

from apps.api.app.core.cache import AsyncMemo, HostGate, NoopGate, make_cache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_ttl_expiry():
    clock = FakeClock()
    cache = make_cache(ttl_seconds=10, max_items=5, clock=clock)
    cache["k"] = 1
    assert cache.get("k") == 1
    clock.now += 9.9
    assert "k" in cache
    clock.now += 0.2
    assert cache.get("k") is None
    assert "k" not in cache


def test_lru_eviction_prefers_least_recent():
    cache = make_cache(ttl_seconds=60, max_items=2)
    cache["a"] = 1
    cache["b"] = 2
    cache.get("a")
    cache["c"] = 3
    assert "a" in cache
    assert "b" not in cache
    assert len(cache) == 2


def test_memo_shares_in_flight_work():
    memo = AsyncMemo(make_cache(60, 10))
    calls = []

    async def compute():
        calls.append(1)
        await asyncio.sleep(0.01)
        return {"value": 42}

    async def main():
        return await asyncio.gather(*[memo.get_or_compute("key", compute) for _ in range(5)])

    results = asyncio.run(main())
    assert len(calls) == 1
    assert all(r is results[0] for r in results)
    assert memo.in_flight == 0


def test_memo_does_not_cache_failures():
    memo = AsyncMemo(make_cache(60, 10))
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("boom")
        return "ok"

    async def main():
        with pytest.raises(RuntimeError):
            await memo.get_or_compute("k", flaky)
        return await memo.get_or_compute("k", flaky)

    assert asyncio.run(main()) == "ok"
    assert len(attempts) == 2


def test_memo_force_recomputes():
    memo = AsyncMemo(make_cache(60, 10))
    counter = {"n": 0}

    async def compute():
        counter["n"] += 1
        return counter["n"]

    async def main():
        first = await memo.get_or_compute("k", compute)
        cached = await memo.get_or_compute("k", compute)
        forced = await memo.get_or_compute("k", compute, force=True)
        after = await memo.get_or_compute("k", compute)
        return first, cached, forced, after

    assert asyncio.run(main()) == (1, 1, 2, 2)


def test_host_gate_bounds_concurrency():
    async def main():
        gate = HostGate(2)
        active = {"now": 0, "peak": 0}

        async def work():
            async with gate:
                active["now"] += 1
                active["peak"] = max(active["peak"], active["now"])
                await asyncio.sleep(0.01)
                active["now"] -= 1

        await asyncio.gather(*[work() for _ in range(6)])
        return active["peak"]

    assert asyncio.run(main()) == 2


def test_noop_gate():
    async def main():
        async with NoopGate():
            return True

    assert asyncio.run(main())


def test_gate_rejects_zero():
    with pytest.raises(ValueError):
        HostGate(0)


def test_make_cache_rejects_zero_size():
    with pytest.raises(ValueError):
        make_cache(60, 0)


def test_superseded_computation_does_not_overwrite_forced_result():
    memo = AsyncMemo(make_cache(60, 10))

    async def slow_stale():
        await asyncio.sleep(0.05)
        return "stale"

    async def fresh():
        return "fresh"

    async def main():
        pending = asyncio.ensure_future(memo.get_or_compute("slate", slow_stale))
        await asyncio.sleep(0)
        forced = await memo.get_or_compute("slate", fresh, force=True)
        original = await pending
        cached = await memo.get_or_compute("slate", slow_stale)
        return forced, original, cached

    forced, original, cached = asyncio.run(main())
    assert forced == "fresh"
    assert original == "stale"
    assert cached == "fresh"
    assert memo.in_flight == 0
