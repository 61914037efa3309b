"""Tests for request-scoped caching and listing invalidation."""

import asyncio

import pytest

from app.catalog.cache import RequestCache
from app.catalog.invalidation import ListingInvalidator, get_invalidator


class TestRequestCache:
    """Tests for RequestCache."""

    @pytest.mark.asyncio
    async def test_loads_once(self) -> None:
        cache = RequestCache()
        calls = []

        async def load():
            calls.append(1)
            return "value"

        assert await cache.get_or_load(1, load) == "value"
        assert await cache.get_or_load(1, load) == "value"
        assert calls == [1]
        assert 1 in cache

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_one_load(self) -> None:
        """Waiters arriving mid-load get the same result."""
        cache = RequestCache()
        release = asyncio.Event()
        calls = []

        async def load():
            calls.append(1)
            await release.wait()
            return {"id": 7}

        first = asyncio.create_task(cache.get_or_load(7, load))
        second = asyncio.create_task(cache.get_or_load(7, load))
        await asyncio.sleep(0)
        release.set()

        a, b = await asyncio.gather(first, second)
        assert a is b
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self) -> None:
        cache = RequestCache()
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("store unavailable")
            return "ok"

        with pytest.raises(RuntimeError):
            await cache.get_or_load("k", flaky)
        assert "k" not in cache
        assert await cache.get_or_load("k", flaky) == "ok"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_cancels_load(self) -> None:
        """A cancelled lookup leaves no load running and nothing cached."""
        cache = RequestCache()
        started = asyncio.Event()
        outcome = []

        async def slow():
            started.set()
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                outcome.append("cancelled")
                raise
            outcome.append("finished")
            return "late"

        task = asyncio.create_task(cache.get_or_load("k", slow))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert outcome == ["cancelled"]
        assert "k" not in cache

        async def fast():
            return "fresh"

        assert await cache.get_or_load("k", fast) == "fresh"

    @pytest.mark.asyncio
    async def test_invalidate(self) -> None:
        cache = RequestCache()

        async def load():
            return 1

        await cache.get_or_load("a", load)
        await cache.get_or_load("b", load)
        cache.invalidate("a")
        assert "a" not in cache
        assert "b" in cache
        cache.invalidate()
        assert len(cache) == 0


class TestListingInvalidator:
    """Tests for ListingInvalidator."""

    def test_generation_bumps(self) -> None:
        invalidator = ListingInvalidator()
        assert invalidator.generation("/products") == 0
        invalidator.mark_stale("/products")
        invalidator.mark_stale("/products")
        assert invalidator.generation("/products") == 2
        assert invalidator.generation("/other") == 0

    def test_subscribers_notified(self) -> None:
        invalidator = ListingInvalidator()
        seen = []
        invalidator.subscribe(seen.append)

        invalidator.mark_stale("/products")
        invalidator.unsubscribe(seen.append)
        invalidator.mark_stale("/products")

        assert seen == ["/products"]

    def test_singleton(self) -> None:
        assert get_invalidator() is get_invalidator()
