"""
Duplicate-request suppression.

While a cache entry is live, every call with the same fingerprint receives
the entry's shared future instead of issuing a new request. Entries are
evicted when their future settles, after a delay, or never, depending on the
call's ``cache_timeout``.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .cancellation import AbortController
from .config import AjaxConfig

logger = logging.getLogger("fetch_ajax.dedup")


@dataclass
class CacheEntry:
    """Live (or recently settled) request shared by identical calls."""

    fingerprint: str
    future: "asyncio.Future[Any]"
    config: AjaxConfig
    controller: Optional[AbortController] = None
    created_at: float = 0
    subscribers: int = 1


class MemoryCacheEntryStore:
    """
    In-memory store for cache entries keyed by fingerprint.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, fingerprint: str) -> Optional[CacheEntry]:
        """Get an entry by fingerprint."""
        return self._entries.get(fingerprint)

    def set(self, fingerprint: str, entry: CacheEntry) -> None:
        """Register an entry, replacing any previous one."""
        self._entries[fingerprint] = entry

    def delete(self, fingerprint: str) -> bool:
        """Remove an entry."""
        if fingerprint in self._entries:
            del self._entries[fingerprint]
            return True
        return False

    def has(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def values(self) -> List[CacheEntry]:
        return list(self._entries.values())

    def size(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class DedupCache:
    """
    DedupCache - at most one live request per fingerprint.

    Example:
        cache = DedupCache()
        entry = cache.dedupe(key, lambda: start_request(config), cache_timeout=None)
        result = await asyncio.shield(entry.future)

    Lookup and insert happen without an intermediate suspension point, so
    two calls scheduled on the same loop can never both miss the cache.
    """

    def __init__(self, store: Optional[MemoryCacheEntryStore] = None) -> None:
        self._store = store or MemoryCacheEntryStore()
        self._eviction_timers: Dict[str, asyncio.TimerHandle] = {}

    def dedupe(
        self,
        fingerprint: str,
        produce: Callable[[], CacheEntry],
        cache_timeout: Optional[float] = None,
        debug: bool = False,
    ) -> CacheEntry:
        """Return the live entry for ``fingerprint`` or create one with ``produce``.

        ``cache_timeout == 0`` bypasses the cache entirely: ``produce`` is
        called and its entry is never stored.
        """
        if cache_timeout == 0:
            return produce()

        existing = self._store.get(fingerprint)
        if existing is not None:
            existing.subscribers += 1
            if debug:
                logger.debug(
                    f"read from cache: {fingerprint} (subscribers={existing.subscribers})"
                )
            return existing

        entry = produce()
        if not entry.created_at:
            entry.created_at = time.time()
        self._store.set(fingerprint, entry)
        entry.future.add_done_callback(
            lambda _future: self._schedule_eviction(fingerprint, cache_timeout)
        )
        return entry

    def _schedule_eviction(self, fingerprint: str, cache_timeout: Optional[float]) -> None:
        if cache_timeout is None:
            self.delete(fingerprint)
            return
        if cache_timeout < 0:
            logger.debug(f"DedupCache: keeping {fingerprint} until cleared")
            return

        loop = asyncio.get_running_loop()
        previous = self._eviction_timers.pop(fingerprint, None)
        if previous is not None:
            previous.cancel()
        self._eviction_timers[fingerprint] = loop.call_later(
            cache_timeout, self._evict_later, fingerprint
        )

    def _evict_later(self, fingerprint: str) -> None:
        self._eviction_timers.pop(fingerprint, None)
        self.delete(fingerprint)

    def delete(self, fingerprint: str) -> bool:
        """Drop whatever entry is currently stored under ``fingerprint``."""
        removed = self._store.delete(fingerprint)
        if removed:
            logger.debug(f"DedupCache: evicted {fingerprint}")
        return removed

    def get(self, fingerprint: str) -> Optional[CacheEntry]:
        return self._store.get(fingerprint)

    def has(self, fingerprint: str) -> bool:
        return self._store.has(fingerprint)

    def entries(self) -> List[CacheEntry]:
        """Snapshot of the stored entries."""
        return self._store.values()

    def size(self) -> int:
        return self._store.size()

    def clear(self) -> None:
        """Drop all entries and pending eviction timers."""
        for timer in self._eviction_timers.values():
            timer.cancel()
        self._eviction_timers.clear()
        self._store.clear()
