"""
Request-keyed cache for API reads.

Reads are addressed by a ``QueryKey`` (resource name plus parameters). Two
reads with equal keys share one in-flight request and one cached result.
Mutations call ``invalidate`` with a key pattern; every cached key whose
resource matches and whose parameters start with the pattern's parameters is
discarded and re-fetched on its next read. Nothing is patched in place and
nothing is retried.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class QueryKey:
    resource: str
    params: Tuple[Any, ...] = ()

    def __post_init__(self):
        if not self.resource:
            raise ValueError("QueryKey needs a resource name")
        if not isinstance(self.params, tuple):
            raise ValueError("QueryKey params must be a tuple")

    @classmethod
    def of(cls, resource: str, *params: Any) -> "QueryKey":
        return cls(resource, tuple(params))

    def matches(self, pattern: "QueryKey") -> bool:
        """True when ``pattern`` names this key or a prefix of it."""
        if self.resource != pattern.resource:
            return False
        return self.params[:len(pattern.params)] == pattern.params

    def __str__(self) -> str:
        return "/".join([self.resource] + ["-" if p is None else str(p) for p in self.params])


class QueryCache:
    """In-memory cache with in-flight de-duplication and pattern invalidation."""

    def __init__(self) -> None:
        self._entries: Dict[QueryKey, Any] = {}
        self._in_flight: Dict[QueryKey, asyncio.Task] = {}
        # Bumped on every invalidation so that a fetch started earlier cannot
        # write its result back over the invalidation.
        self._generations: Dict[QueryKey, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey, default: Optional[Any] = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = value

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        """
        Return the cached value for ``key``, joining or starting the fetch if needed.

        Errors raised by ``fetcher`` propagate to every awaiter and are not cached.
        """
        if not isinstance(key, QueryKey):
            raise ValueError(f"QueryCache keys must be QueryKey instances, got {type(key).__name__}")
        if key in self._entries:
            logger.debug("Cache hit for %s", key)
            return self._entries[key]

        task = self._in_flight.get(key)
        if task is None:
            logger.debug("Fetching %s", key)
            task = asyncio.ensure_future(self._run(key, fetcher, self._generations.get(key, 0)))
            self._in_flight[key] = task
        else:
            logger.debug("Joining in-flight request for %s", key)
        # One awaiter giving up must not cancel the request for the others.
        return await asyncio.shield(task)

    async def _run(self, key: QueryKey, fetcher: Callable[[], Awaitable[T]], generation: int) -> T:
        try:
            value = await fetcher()
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]
        if self._generations.get(key, 0) == generation:
            self._entries[key] = value
        else:
            logger.debug("Discarding result for %s: invalidated while in flight", key)
        return value

    def invalidate(self, pattern: QueryKey) -> int:
        """
        Discard every cached or in-flight key matching ``pattern``.

        Returns:
            int: How many keys were affected.
        """
        affected = {key for key in list(self._entries) + list(self._in_flight) if key.matches(pattern)}
        for key in affected:
            self._entries.pop(key, None)
            self._in_flight.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
        logger.debug("Invalidated %d key(s) matching %s", len(affected), pattern)
        return len(affected)

    def clear(self) -> None:
        for key in list(self._entries) + list(self._in_flight):
            self._generations[key] = self._generations.get(key, 0) + 1
        self._entries.clear()
        self._in_flight.clear()


class LatestRequestGate:
    """
    Hands out increasing sequence numbers; only the newest one is current.

    Used to drop responses of requests that were superseded while in flight.
    """

    def __init__(self) -> None:
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, sequence: int) -> bool:
        return sequence == self._latest

    @property
    def latest(self) -> int:
        return self._latest
