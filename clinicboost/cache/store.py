"""In-memory cache with pluggable eviction, TTL expiry and statistics."""

import asyncio
import contextlib
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from clinicboost.cache.sizing import estimate_entry_size
from clinicboost.models.cache import CacheConfig, CacheStats
from clinicboost.models.enums import EvictionStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass(slots=True)
class CacheEntry:
    value: object
    created_at: float  # time.monotonic() of the last full write
    last_accessed: float
    ttl: float  # seconds, fixed when the entry is written
    access_count: int = 1
    tags: frozenset[str] = frozenset()


class CacheMetrics:
    """Tracks cache hit/miss statistics."""

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.evictions = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class Cache:
    """TTL cache with LRU, LFU or FIFO eviction.

    Entries live in an ``OrderedDict`` kept in write order; under LRU a hit
    also moves the entry to the end, so for LRU and FIFO the head is always
    the next victim. LFU scans for the lowest access count, taking the first
    one in iteration order on ties.

    Expiry is enforced on every ``get``/``has``. The background sweep started
    by :meth:`start_cleanup` (or ``async with``) only reclaims memory.

    Args:
        config: Cache options. Defaults to ``CacheConfig()``.
        name: Human-readable name for logging.
        **overrides: Individual ``CacheConfig`` fields, applied on top of
            *config*.
    """

    def __init__(
        self, config: CacheConfig | None = None, *, name: str = "cache", **overrides: Any
    ) -> None:
        if config is None:
            config = CacheConfig(**overrides)
        elif overrides:
            config = CacheConfig(**{**config.model_dump(), **overrides})

        self.config = config
        self.name = name
        self.metrics = CacheMetrics()
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._cleanup_task: asyncio.Task[None] | None = None
        self._refresh_tasks: dict[str, asyncio.Task[None]] = {}

    # ── Store ────────────────────────────────────────────────────────────────

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > entry.ttl

    def _count(self, counter: str) -> None:
        if self.config.enable_stats:
            setattr(self.metrics, counter, getattr(self.metrics, counter) + 1)

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value if present and within TTL.

        A hit bumps the entry's access count and last-access time. An
        expired entry is removed and counted as a miss.

        Args:
            key: Cache key.
            default: Returned on a miss.

        Returns:
            Cached value or *default*.
        """
        entry = self._store.get(key)
        if entry is None:
            self._count("misses")
            return default

        now = time.monotonic()
        if self._is_expired(entry, now):
            del self._store[key]
            self._count("misses")
            return default

        entry.access_count += 1
        entry.last_accessed = now
        if self.config.strategy == EvictionStrategy.LRU:
            self._store.move_to_end(key)
        self._count("hits")
        return entry.value

    def set(
        self,
        key: str,
        value: object,
        *,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value, evicting one entry first if the cache is full.

        Any existing entry for *key* is replaced outright, resetting its
        creation time and access count.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Lifetime of this entry in seconds. Defaults to the cache's TTL.
            tags: Labels for :meth:`clear_by_tags`.
        """
        self._store.pop(key, None)
        if self.config.max_size < 1:
            return

        while len(self._store) >= self.config.max_size:
            self._evict()

        now = time.monotonic()
        self._store[key] = CacheEntry(
            value=value,
            created_at=now,
            last_accessed=now,
            ttl=self.config.ttl if ttl is None else ttl,
            tags=frozenset(tags),
        )
        self._count("sets")

    async def get_or_refresh(
        self,
        key: str,
        refresh_fn: Callable[[], Awaitable[T]],
        *,
        ttl: float | None = None,
        refresh_threshold: float = 0.1,
        tags: Iterable[str] = (),
    ) -> T:
        """Return the cached value, refreshing it in the background near expiry.

        On a miss *refresh_fn* is awaited and its result stored. On a hit
        whose remaining lifetime is below ``refresh_threshold`` of its TTL,
        the cached value is returned at once and *refresh_fn* runs in a
        background task that overwrites the entry when it finishes. At most
        one background refresh runs per key. A failed refresh is logged and
        the old value stays until it expires.

        Args:
            key: Cache key.
            refresh_fn: Coroutine function producing a fresh value.
            ttl: Lifetime of stored values. Defaults to the cache's TTL.
            refresh_threshold: Fraction of the TTL left at which to refresh.
            tags: Labels attached to stored values.
        """
        tags = tuple(tags)
        cached = self.get(key, _MISSING)
        if cached is _MISSING:
            value = await refresh_fn()
            self.set(key, value, ttl=ttl, tags=tags)
            return value

        entry = self._store[key]
        time_left = entry.created_at + entry.ttl - time.monotonic()
        if time_left < entry.ttl * refresh_threshold and key not in self._refresh_tasks:
            task = asyncio.create_task(
                self._refresh(key, refresh_fn, ttl, tags), name=f"cache-refresh-{self.name}"
            )
            self._refresh_tasks[key] = task
            task.add_done_callback(lambda _: self._refresh_tasks.pop(key, None))
        return cached

    async def _refresh(
        self,
        key: str,
        refresh_fn: Callable[[], Awaitable[Any]],
        ttl: float | None,
        tags: tuple[str, ...],
    ) -> None:
        try:
            value = await refresh_fn()
        except Exception as exc:
            logger.error(
                "Background refresh of %r in cache '%s' failed: %s", key, self.name, exc
            )
            return
        self.set(key, value, ttl=ttl, tags=tags)
        logger.debug("Cache '%s' refreshed %r in the background", self.name, key)

    def _evict(self) -> None:
        if self.config.strategy == EvictionStrategy.LFU:
            victim = min(self._store, key=lambda k: self._store[k].access_count)
        else:
            victim = next(iter(self._store))

        del self._store[victim]
        self._count("evictions")
        logger.debug(
            "Cache '%s' evicted %r (%s)", self.name, victim, self.config.strategy.value
        )

    def has(self, key: str) -> bool:
        """Return True if *key* is present and unexpired. Touches no statistics."""
        entry = self._store.get(key)
        return entry is not None and not self._is_expired(entry, time.monotonic())

    def delete(self, key: str) -> bool:
        """Remove a specific key. Returns True if the key existed."""
        if self._store.pop(key, None) is None:
            return False
        self._count("deletes")
        return True

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        cleared = len(self._store)
        self._store.clear()
        self.metrics = CacheMetrics()
        logger.info("Cache '%s' cleared (%d entries)", self.name, cleared)

    def keys(self) -> list[str]:
        return list(self._store)

    def size(self) -> int:
        """Current number of entries, including expired ones not yet swept."""
        return len(self._store)

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = time.monotonic()
        expired = [k for k, e in self._store.items() if self._is_expired(e, now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug("Cache '%s' swept %d expired entries", self.name, len(expired))
        return len(expired)

    def clear_by_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry carrying at least one of *tags*.

        Returns:
            Number of entries removed.
        """
        wanted = frozenset(tags)
        doomed = [k for k, e in self._store.items() if e.tags & wanted]
        for key in doomed:
            del self._store[key]
            self._count("deletes")
        logger.info(
            "Cache '%s' cleared %d entries by tags %s", self.name, len(doomed), sorted(wanted)
        )
        return len(doomed)

    # ── Statistics ───────────────────────────────────────────────────────────

    def estimate_memory_usage(self) -> int:
        return sum(estimate_entry_size(k, e.value) for k, e in self._store.items())

    def get_stats(self) -> CacheStats:
        """Snapshot of the cache statistics.

        With ``enable_stats`` off only ``size`` is reported.
        """
        if not self.config.enable_stats:
            return CacheStats(size=len(self._store))

        m = self.metrics
        return CacheStats(
            hits=m.hits,
            misses=m.misses,
            size=len(self._store),
            hit_rate=m.hit_rate,
            memory_usage=self.estimate_memory_usage(),
            sets=m.sets,
            deletes=m.deletes,
            evictions=m.evictions,
        )

    # ── Memoization ──────────────────────────────────────────────────────────

    def memoize(
        self,
        fn: Callable[..., T],
        key_generator: Callable[..., str] | None = None,
        *,
        namespace: str | None = None,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> Callable[..., T]:
        """Wrap *fn* so its results are cached in this cache.

        Options as for :func:`clinicboost.cache.memoize.memoize`.
        """
        from clinicboost.cache.memoize import memoize

        return memoize(
            fn, self, key_generator=key_generator, namespace=namespace, ttl=ttl, tags=tags
        )

    def memoize_async(
        self,
        fn: Callable[..., Awaitable[T]],
        key_generator: Callable[..., str] | None = None,
        *,
        namespace: str | None = None,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> Callable[..., Awaitable[T]]:
        """Wrap coroutine function *fn*, de-duplicating concurrent calls."""
        from clinicboost.cache.memoize import memoize_async

        return memoize_async(
            fn, self, key_generator=key_generator, namespace=namespace, ttl=ttl, tags=tags
        )

    # ── Expiry sweep ─────────────────────────────────────────────────────────

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start_cleanup(self) -> None:
        """Start the periodic expiry sweep, every ``ttl / 2`` seconds.

        Must be called with an event loop running. A non-positive TTL
        starts nothing.
        """
        if self.cleanup_running:
            return

        interval = self.config.ttl / 2
        if interval <= 0:
            logger.debug("Cache '%s' has no positive TTL; expiry sweep not started", self.name)
            return

        self._cleanup_task = asyncio.create_task(
            self._cleanup_loop(interval), name=f"cache-cleanup-{self.name}"
        )
        logger.info("Cache '%s' expiry sweep started (every %.1fs)", self.name, interval)

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.cleanup()

    async def stop_cleanup(self) -> None:
        """Cancel the expiry sweep and wait for it to finish."""
        task = self._cleanup_task
        if task is None:
            return

        self._cleanup_task = None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Cache '%s' expiry sweep stopped", self.name)

    async def __aenter__(self) -> "Cache":
        self.start_cleanup()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        await self.stop_cleanup()
