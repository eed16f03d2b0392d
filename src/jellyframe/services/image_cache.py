"""
In-memory image cache store.

Holds decoded artwork keyed by resolved URL, bounded by a byte budget and an
entry-count budget with least-recently-used eviction. Entries being
rendered are pinned and never evicted. Concurrent requests for a key that
is not cached share one fetch (single-flight).

The store is the only mutable shared resource of the pipeline. It is owned
by the ``ImagePipeline`` container rather than living as a module-level
instance, and every mutation goes through the methods below under one
internal lock.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Optional, Set

from pydantic import BaseModel, Field

from jellyframe.exceptions import PipelineClosedError
from jellyframe.models.enums import ErrorKind
from jellyframe.models.image import (
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    ImagePayload,
)
from jellyframe.services.error_classifier import classify

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[FetchOutcome]]


# ╔══════════════════════════════════════════════════════════════════════╗
# ║  Pydantic V2 models                                                ║
# ╚══════════════════════════════════════════════════════════════════════╝


class ImageCacheConfig(BaseModel):
    """Configuration for the image cache store.

    Attributes
    ----------
    max_bytes : int
        Byte budget across all cached payloads.
    max_entries : int
        Maximum number of cached entries, enforced independently.
    """

    max_bytes: int = Field(default=64 * 1024 * 1024, ge=1)
    max_entries: int = Field(default=256, ge=1)


class CacheStats(BaseModel):
    """Statistics about the image cache contents.

    Attributes
    ----------
    entries : int
        Number of cached entries.
    size_bytes : int
        Sum of cached payload sizes.
    max_bytes : int
        Configured byte budget.
    max_entries : int
        Configured entry budget.
    hits : int
        Lookups that found an entry.
    misses : int
        Lookups that found nothing.
    evictions : int
        Entries removed by the eviction policy.
    in_flight : int
        Shared fetches currently running.
    pinned : int
        Entries currently marked in use.
    """

    entries: int
    size_bytes: int
    max_bytes: int
    max_entries: int
    hits: int
    misses: int
    evictions: int
    in_flight: int
    pinned: int


@dataclass
class CacheEntry:
    """A cached payload and its bookkeeping.

    Only the store mutates entries. Callers receive them for reading and
    must not keep the payload beyond a ``lease``.
    """

    key: str
    payload: ImagePayload
    size_bytes: int
    last_access: float
    in_use: int = 0

    @property
    def is_evictable(self) -> bool:
        return self.in_use == 0


# ╔══════════════════════════════════════════════════════════════════════╗
# ║  ImageCacheStore                                                    ║
# ╚══════════════════════════════════════════════════════════════════════╝


class ImageCacheStore:
    """Bounded LRU store for decoded images with single-flight loading.

    Parameters
    ----------
    config : ImageCacheConfig
        Byte and entry budgets.
    clock : Callable[[], float]
        Monotonic time source for last-access stamps.
    """

    def __init__(
        self,
        config: ImageCacheConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._clock = clock
        self._lock = threading.RLock()
        # Oldest access first
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._size_bytes = 0
        self._inflight: Dict[str, "asyncio.Task[FetchOutcome]"] = {}
        # Keys cleared while pinned; dropped on final release
        self._drop_on_release: Set[str] = set()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._closed = False

    @property
    def config(self) -> ImageCacheConfig:
        return self._config

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for *key* and mark it most recently used."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or key in self._drop_on_release:
                self._misses += 1
                return None
            entry.last_access = self._clock()
            self._entries.move_to_end(key)
            self._hits += 1
            logger.debug("Cache HIT: %s", key)
            return entry

    def contains(self, key: str) -> bool:
        """Return True if *key* is cached, without touching its recency."""
        with self._lock:
            return key in self._entries and key not in self._drop_on_release

    def is_in_flight(self, key: str) -> bool:
        """Return True if a shared fetch for *key* is running."""
        with self._lock:
            task = self._inflight.get(key)
            return task is not None and not task.done()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def put(self, key: str, payload: ImagePayload) -> Optional[CacheEntry]:
        """Insert or refresh *key*.

        Re-inserting an identical payload only refreshes last access. A
        different payload replaces the stored one. Payloads larger than the
        whole byte budget are not cached.

        Returns
        -------
        CacheEntry | None
            The stored entry, or ``None`` if the payload was too large.
        """
        size = payload.size_bytes
        if size > self._config.max_bytes:
            logger.warning(
                "Not caching %s: %d bytes exceeds budget of %d",
                key,
                size,
                self._config.max_bytes,
            )
            return None

        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is not None:
                if entry.payload != payload:
                    self._size_bytes += size - entry.size_bytes
                    entry.payload = payload
                    entry.size_bytes = size
                entry.last_access = now
                self._entries.move_to_end(key)
                self._drop_on_release.discard(key)
            else:
                entry = CacheEntry(
                    key=key, payload=payload, size_bytes=size, last_access=now
                )
                self._entries[key] = entry
                self._size_bytes += size
                logger.debug("Cached image: %s (%d bytes)", key, size)
            self.evict_if_needed()
            return entry

    def evict_if_needed(self) -> int:
        """Evict least-recently-used, not-in-use entries until within budget.

        Returns
        -------
        int
            Number of entries evicted. Pinned entries are skipped, so the
            store may stay over budget until they are released.
        """
        evicted = 0
        with self._lock:
            if not self._over_budget():
                return 0
            for key in list(self._entries):
                if not self._over_budget():
                    break
                entry = self._entries[key]
                if not entry.is_evictable:
                    continue
                self._remove(key)
                self._evictions += 1
                evicted += 1
                logger.debug("Evicted %s (%d bytes)", key, entry.size_bytes)
            if self._over_budget():
                logger.debug(
                    "Cache over budget with only pinned entries left: "
                    "%d entries, %d bytes",
                    len(self._entries),
                    self._size_bytes,
                )
        return evicted

    def trim(self, target_bytes: int) -> int:
        """Evict evictable LRU entries until the cache holds *target_bytes*.

        Used to shed memory under pressure. Returns the bytes freed.
        """
        freed = 0
        with self._lock:
            for key in list(self._entries):
                if self._size_bytes <= target_bytes:
                    break
                entry = self._entries[key]
                if not entry.is_evictable:
                    continue
                self._remove(key)
                self._evictions += 1
                freed += entry.size_bytes
        logger.info("Trimmed image cache by %d bytes", freed)
        return freed

    def clear(self) -> int:
        """Drop every cached entry.

        Pinned entries stay readable by their holders and are dropped when
        released. Returns the number of entries dropped or scheduled.
        """
        with self._lock:
            count = 0
            for key in list(self._entries):
                if self._entries[key].is_evictable:
                    self._remove(key)
                else:
                    self._drop_on_release.add(key)
                count += 1
        logger.info("Cleared image cache (%d entries)", count)
        return count

    # ------------------------------------------------------------------
    # Pinning
    # ------------------------------------------------------------------

    def pin(self, key: str) -> Optional[CacheEntry]:
        """Mark *key* in use so it cannot be evicted."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.in_use += 1
            entry.last_access = self._clock()
            self._entries.move_to_end(key)
            return entry

    def release(self, key: str) -> None:
        """Release one pin on *key*."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.in_use == 0:
                return
            entry.in_use -= 1
            if entry.in_use == 0 and key in self._drop_on_release:
                self._remove(key)
                return
            self.evict_if_needed()

    @contextmanager
    def lease(self, key: str) -> Iterator[Optional[CacheEntry]]:
        """Pin *key* for the duration of the block."""
        entry = self.pin(key)
        try:
            yield entry
        finally:
            if entry is not None:
                self.release(key)

    # ------------------------------------------------------------------
    # Single-flight loading
    # ------------------------------------------------------------------

    async def get_or_fetch(self, key: str, loader: Loader) -> FetchOutcome:
        """Return the cached payload for *key* or load it once.

        The first caller for an uncached key starts *loader* as a task owned
        by the store; concurrent callers await that same task. A caller that
        is cancelled stops waiting but does not cancel the shared task, so
        the result still lands in the cache for the remaining waiters.

        Parameters
        ----------
        key : str
            Resolved image URL.
        loader : Callable[[], Awaitable[FetchOutcome]]
            Performs the actual fetch; called at most once per flight.

        Returns
        -------
        FetchOutcome
            The shared outcome. ``FetchFailure(CANCELLED)`` if the shared
            fetch itself was cancelled (e.g. the store closed).

        Raises
        ------
        PipelineClosedError
            If the store has been closed.
        """
        if self._closed:
            raise PipelineClosedError("Image cache store is closed")

        entry = self.get(key)
        if entry is not None:
            return FetchSuccess(payload=entry.payload)

        with self._lock:
            task = self._inflight.get(key)
            if task is None:
                task = asyncio.get_running_loop().create_task(
                    self._run_loader(key, loader), name=f"image-fetch:{key}"
                )
                self._inflight[key] = task
            else:
                logger.debug("Joining in-flight fetch: %s", key)

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or current.cancelling() == 0):
                return FetchFailure(kind=ErrorKind.CANCELLED)
            raise

    async def _run_loader(self, key: str, loader: Loader) -> FetchOutcome:
        try:
            try:
                outcome = await loader()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Loader for %s raised: %s", key, exc, exc_info=True)
                outcome = FetchFailure(kind=classify(exc), detail=str(exc))
            if isinstance(outcome, FetchSuccess):
                self.put(key, outcome.payload)
            return outcome
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    # ------------------------------------------------------------------
    # Lifecycle and stats
    # ------------------------------------------------------------------

    def stats(self) -> CacheStats:
        """Return a snapshot of cache statistics."""
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                size_bytes=self._size_bytes,
                max_bytes=self._config.max_bytes,
                max_entries=self._config.max_entries,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                in_flight=sum(1 for t in self._inflight.values() if not t.done()),
                pinned=sum(1 for e in self._entries.values() if e.in_use),
            )

    async def aclose(self) -> None:
        """Cancel shared fetches and drop all entries."""
        self._closed = True
        with self._lock:
            tasks = list(self._inflight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.clear()
        logger.debug("Image cache store closed")

    def _over_budget(self) -> bool:
        return (
            self._size_bytes > self._config.max_bytes
            or len(self._entries) > self._config.max_entries
        )

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._size_bytes -= entry.size_bytes
        self._drop_on_release.discard(key)
