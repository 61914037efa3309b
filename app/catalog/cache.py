"""Request-scoped memoization.

A ``RequestCache`` lives as long as the service instance that owns it (one
per request) and never outlives it. Concurrent lookups for the same key wait
on a per-key lock, so only one of them runs the load.

The load runs inline in the calling task. Cancelling the caller cancels the
load with it, and nothing keeps using the request's session afterwards.
"""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Any


class RequestCache:
    """Single-flight memo of async loads, keyed by id."""

    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}
        self._locks: dict[Hashable, asyncio.Lock] = {}

    async def get_or_load(
        self,
        key: Hashable,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached value for key, loading it once if needed.

        Failed or cancelled loads are not cached; the next waiter for the
        key retries the load.

        Args:
            key: Cache key.
            loader: Zero-argument coroutine factory producing the value.

        Returns:
            Loaded value.
        """
        if key in self._values:
            return self._values[key]

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key in self._values:
                return self._values[key]
            value = await loader()
            self._values[key] = value
            return value

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one entry, or everything when key is None."""
        keys = [*self._values, *self._locks] if key is None else [key]
        for k in keys:
            self._values.pop(k, None)
            lock = self._locks.get(k)
            if lock is not None and not lock.locked():
                del self._locks[k]

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)
