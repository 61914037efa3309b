"""Listing invalidation signal.

Mutations call ``mark_stale(path)`` after they commit so anything caching a
rendered listing knows the product collection changed.
"""

from collections.abc import Callable
from typing import Protocol

import structlog

logger = structlog.get_logger()


class InvalidationSink(Protocol):
    """Receiver of "this path may now be stale" signals."""

    def mark_stale(self, path: str) -> None: ...


class ListingInvalidator:
    """In-process invalidation sink.

    Keeps a generation counter per path and notifies subscribers. Readers
    compare generations to decide whether a cached view is still current.
    """

    def __init__(self) -> None:
        self._generations: dict[str, int] = {}
        self._listeners: list[Callable[[str], None]] = []

    def mark_stale(self, path: str) -> None:
        """Bump the generation for path and notify subscribers."""
        self._generations[path] = self._generations.get(path, 0) + 1
        logger.info(
            "Listing marked stale",
            path=path,
            generation=self._generations[path],
        )
        for listener in list(self._listeners):
            listener(path)

    def generation(self, path: str) -> int:
        """Current generation of path (0 if never invalidated)."""
        return self._generations.get(path, 0)

    def subscribe(self, listener: Callable[[str], None]) -> None:
        """Register a callback invoked with the stale path."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[str], None]) -> None:
        """Remove a previously registered callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)


# Global invalidator instance
_invalidator: ListingInvalidator | None = None


def get_invalidator() -> ListingInvalidator:
    """Get listing invalidator singleton."""
    global _invalidator
    if _invalidator is None:
        _invalidator = ListingInvalidator()
    return _invalidator
