"""
Prefetch scheduler for focus-driven image warming.

When focus moves in a list, the primary images of the items around it are
queued for background fetching so they are already cached when the user
reaches them. Worker tasks owned by the scheduler drain the queue through
the shared cache (single-flight) and fetch pool, so prefetch never issues a
duplicate request for something an on-demand load is already fetching.

Successful prefetches are tracked by the cache alone, so a URL the cache
later evicts becomes eligible again. Only recent failures are remembered,
in a bounded map, so a broken image is not requested on every focus move.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import List, Optional, Set

from pydantic import BaseModel, Field

from jellyframe.exceptions import PipelineClosedError
from jellyframe.models.catalog_item import CatalogItem
from jellyframe.models.enums import ErrorKind, PresentationContext
from jellyframe.services.image_cache import ImageCacheStore
from jellyframe.services.image_fetcher import ImageFetchPipeline
from jellyframe.services.image_resolver import ImageUrlResolver, context_for_kind

logger = logging.getLogger(__name__)

ContextSelector = Callable[[CatalogItem], PresentationContext]


class PrefetchConfig(BaseModel):
    """Configuration for the prefetch scheduler.

    Attributes
    ----------
    preload_distance : int
        Items on each side of the focus to warm.
    workers : int
        Number of background worker tasks.
    max_preload_count : int
        Most URLs scheduled for a single focus change.
    failure_memory : int
        How many recently failed URLs are remembered and not rescheduled.
    """

    preload_distance: int = Field(default=2, ge=0)
    workers: int = Field(default=4, ge=1)
    max_preload_count: int = Field(default=10, ge=1)
    failure_memory: int = Field(default=256, ge=1)


class PrefetchStats(BaseModel):
    """Counters describing prefetch activity since the last reset."""

    scheduled: int = 0
    completed: int = 0
    failed: int = 0
    dropped: int = 0
    skipped: int = 0


class PrefetchScheduler:
    """Warms the cache for items adjacent to the focused one.

    Parameters
    ----------
    resolver : ImageUrlResolver
        Produces the primary candidate for each windowed item.
    cache : ImageCacheStore
        Shared store; prefetched payloads land here.
    pipeline : ImageFetchPipeline
        Runs single fetch attempts through the shared pool.
    config : PrefetchConfig
        Window distance, worker count and per-event cap.
    context_for : Callable[[CatalogItem], PresentationContext] | None
        Picks the card context for an item. Defaults to the item kind's
        usual card.
    """

    def __init__(
        self,
        resolver: ImageUrlResolver,
        cache: ImageCacheStore,
        pipeline: ImageFetchPipeline,
        config: PrefetchConfig,
        context_for: Optional[ContextSelector] = None,
    ) -> None:
        self._resolver = resolver
        self._cache = cache
        self._pipeline = pipeline
        self._config = config
        self._context_for = context_for or (lambda item: context_for_kind(item.kind))

        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._workers: List[asyncio.Task[None]] = []
        self._window_urls: Set[str] = set()
        self._queued: Set[str] = set()
        self._failed: OrderedDict[str, None] = OrderedDict()
        self._stats = PrefetchStats()
        self._closed = False

    @property
    def config(self) -> PrefetchConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._workers)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def window_indices(self, index: int, size: int) -> List[int]:
        """Return the list indices to prefetch around *index*.

        The window is ``[index - D, index + D]`` clipped to ``[0, size)``
        with the focused index itself excluded.
        """
        distance = self._config.preload_distance
        start = max(0, index - distance)
        end = min(size - 1, index + distance)
        return [i for i in range(start, end + 1) if i != index]

    def on_focus_changed(
        self, index: int, items: Sequence[CatalogItem]
    ) -> List[str]:
        """Queue the primary images of the items around *index*.

        The window computed here replaces the previous one: queued URLs
        that fall outside it are dropped when a worker reaches them.
        Fetches that already started are left to finish.

        Parameters
        ----------
        index : int
            Index of the newly focused item.
        items : Sequence[CatalogItem]
            The list being navigated.

        Returns
        -------
        List[str]
            URLs newly queued by this call.
        """
        if self._closed:
            logger.debug("Ignoring focus change on closed prefetch scheduler")
            return []

        indices = self.window_indices(index, len(items))
        logger.debug(
            "Prefetch window around %d: %s (of %d items)", index, indices, len(items)
        )

        window_urls: Set[str] = set()
        scheduled: List[str] = []
        for i in indices:
            item = items[i]
            candidate = self._resolver.primary_candidate(item, self._context_for(item))
            if candidate is None or candidate.url is None:
                continue
            url = candidate.url
            window_urls.add(url)

            if (
                url in self._failed
                or url in self._queued
                or self._cache.contains(url)
                or self._cache.is_in_flight(url)
            ):
                self._stats.skipped += 1
                continue
            if len(scheduled) >= self._config.max_preload_count:
                self._stats.skipped += 1
                continue

            self._queued.add(url)
            self._queue.put_nowait(url)
            scheduled.append(url)

        self._window_urls = window_urls
        self._stats.scheduled += len(scheduled)
        return scheduled

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the worker tasks on the running event loop."""
        if self._closed:
            raise PipelineClosedError("Prefetch scheduler is closed")
        if self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._workers = [
            loop.create_task(self._worker(), name=f"prefetch-worker-{n}")
            for n in range(self._config.workers)
        ]
        logger.debug("Started %d prefetch worker(s)", len(self._workers))

    async def join(self) -> None:
        """Wait until every queued URL has been handled."""
        if not self.is_running:
            self.start()
        await self._queue.join()

    async def _worker(self) -> None:
        while True:
            url = await self._queue.get()
            try:
                await self._prefetch(url)
            except PipelineClosedError:
                logger.debug("Cache closed; skipping prefetch of %s", url)
            except Exception as e:
                logger.warning("Prefetch of %s raised: %s", url, e)
                self._stats.failed += 1
            finally:
                self._queue.task_done()

    async def _prefetch(self, url: str) -> None:
        self._queued.discard(url)
        if url not in self._window_urls:
            self._stats.dropped += 1
            logger.debug("Dropped stale prefetch: %s", url)
            return
        if url in self._failed or self._cache.contains(url):
            self._stats.skipped += 1
            return

        outcome = await self._cache.get_or_fetch(
            url, functools.partial(self._pipeline.fetch_once, url)
        )
        if outcome.ok:
            self._stats.completed += 1
            self._failed.pop(url, None)
            logger.debug("Prefetched %s", url)
        else:
            self._stats.failed += 1
            if outcome.kind is not ErrorKind.CANCELLED:
                self._remember_failure(url)
            logger.debug("Prefetch failed for %s: %s", url, outcome.kind.value)

    def _remember_failure(self, url: str) -> None:
        self._failed[url] = None
        self._failed.move_to_end(url)
        while len(self._failed) > self._config.failure_memory:
            self._failed.popitem(last=False)

    # ------------------------------------------------------------------
    # Lifecycle and stats
    # ------------------------------------------------------------------

    def stats(self) -> PrefetchStats:
        """Return a snapshot of the prefetch counters."""
        return self._stats.model_copy()

    def reset(self) -> None:
        """Forget remembered failures and zero the counters."""
        self._failed.clear()
        self._stats = PrefetchStats()
        logger.debug("Prefetch scheduler reset")

    async def aclose(self) -> None:
        """Stop the workers and discard anything still queued."""
        self._closed = True
        for task in self._workers:
            task.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        self._queued.clear()
        self._window_urls = set()
        logger.debug("Prefetch scheduler closed")
