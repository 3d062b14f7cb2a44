"""
Autocomplete Cache.

A small TTL cache of identifier lists, keyed by e.g. "adventure-ids".
Entries are immutable and replaced wholesale: a refresh builds a new
entry and swaps in a new mapping, so readers never see a half-written
entry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5.0

Clock = Callable[[], float]
Fetcher = Callable[[], Awaitable[Iterable[str]]]


@dataclass(frozen=True)
class CacheEntry:
    """A fetched identifier list and when it was fetched."""

    key: str
    values: tuple[str, ...]
    fetched_at: float

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.fetched_at >= ttl


class AutocompleteCache:
    """
    Time-boxed cache in front of the entity lookup service.

    On a miss or an expired entry the fetcher is called once; concurrent
    callers for the same key share that fetch. A failed fetch serves the
    last known (stale) list, or nothing if the key was never populated.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Mapping[str, CacheEntry] = MappingProxyType({})
        self._inflight: dict[str, asyncio.Task[tuple[str, ...]]] = {}

    def peek(self, key: str) -> CacheEntry | None:
        """Return the stored entry without refreshing it."""
        return self._entries.get(key)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        if key is None:
            self._entries = MappingProxyType({})
        elif key in self._entries:
            self._swap({k: v for k, v in self._entries.items() if k != key})

    async def get(self, key: str, fetch: Fetcher) -> tuple[str, ...]:
        """Return the cached list for `key`, refreshing it first if stale."""
        entry = self._entries.get(key)
        if entry is not None and not entry.is_expired(self._clock(), self.ttl):
            return entry.values

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, fetch))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task)

    async def _refresh(self, key: str, fetch: Fetcher) -> tuple[str, ...]:
        try:
            values = tuple(await fetch())
        except Exception as e:
            stale = self._entries.get(key)
            logger.warning(
                "Autocomplete fetch for %s failed, serving %s: %s",
                key,
                "stale list" if stale else "nothing",
                e,
            )
            return stale.values if stale else ()

        entry = CacheEntry(key=key, values=values, fetched_at=self._clock())
        self._swap({**self._entries, key: entry})
        logger.debug("Refreshed autocomplete cache %s (%d values)", key, len(values))
        return values

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def _swap(self, entries: dict[str, CacheEntry]) -> None:
        self._entries = MappingProxyType(entries)
