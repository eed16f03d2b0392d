"""
Image pipeline container for jellyframe.

Builds and owns every long-lived component of the image pipeline from
``Settings``: the HTTP client, fetch pool, cache store, resolver,
orchestrator and prefetch scheduler. Components are created lazily through
``functools.cached_property`` and shared, so on-demand loads and prefetch
use the same cache and the same concurrency cap.

Usage
-----
    >>> async with ImagePipeline() as pipeline:
    ...     async for state in pipeline.orchestrator.load_image(item):
    ...         render(state)

Tests inject a fake network collaborator through ``fetcher=``:

    >>> pipeline = ImagePipeline(settings=Settings(), fetcher=FakeFetcher())
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Any, Optional

from jellyframe.config.settings import Settings, get_settings
from jellyframe.exceptions import PipelineClosedError
from jellyframe.services.error_classifier import RetryPolicy
from jellyframe.services.image_cache import ImageCacheConfig, ImageCacheStore
from jellyframe.services.image_fetcher import (
    FetchPool,
    HttpxImageFetcher,
    ImageFetcher,
    ImageFetchPipeline,
)
from jellyframe.services.image_loader import ImageLoadOrchestrator
from jellyframe.services.image_resolver import ImageUrlResolver
from jellyframe.services.pagination import PaginationManager
from jellyframe.services.prefetch import PrefetchConfig, PrefetchScheduler

logger = logging.getLogger(__name__)


class ImagePipeline:
    """
    Owner of the image pipeline components.

    Parameters
    ----------
    settings : Settings | None
        Configuration; read from the environment when omitted.
    fetcher : ImageFetcher | None
        Network collaborator. When omitted an ``HttpxImageFetcher`` with its
        own ``httpx.AsyncClient`` is created and closed with the pipeline.

    Examples
    --------
    >>> pipeline = ImagePipeline(settings=Settings(server_url="http://tv:8096"))
    >>> pipeline.cache is pipeline.cache
    True
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetcher: Optional[ImageFetcher] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._injected_fetcher = fetcher
        self._closed = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Singleton components (cached per pipeline)
    # -------------------------------------------------------------------------

    @cached_property
    def fetcher(self) -> ImageFetcher:
        """Network collaborator shared by every fetch."""
        if self._injected_fetcher is not None:
            return self._injected_fetcher
        return HttpxImageFetcher()

    @cached_property
    def pool(self) -> FetchPool:
        return FetchPool(self._settings.max_concurrent_fetches)

    @cached_property
    def fetch_pipeline(self) -> ImageFetchPipeline:
        return ImageFetchPipeline(
            self.fetcher, self.pool, timeout=self._settings.fetch_timeout
        )

    @cached_property
    def cache(self) -> ImageCacheStore:
        """The single cache store shared by loads and prefetch."""
        return ImageCacheStore(
            ImageCacheConfig(
                max_bytes=self._settings.cache_max_bytes,
                max_entries=self._settings.cache_max_entries,
            )
        )

    @cached_property
    def resolver(self) -> ImageUrlResolver:
        return ImageUrlResolver(
            self._settings.server_url,
            api_key=self._settings.api_key,
            quality=self._settings.image_quality,
        )

    @cached_property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self._settings.retry_attempts,
            backoff=self._settings.retry_backoff,
        )

    @cached_property
    def orchestrator(self) -> ImageLoadOrchestrator:
        return ImageLoadOrchestrator(
            self.resolver, self.cache, self.fetch_pipeline, self.retry_policy
        )

    @cached_property
    def scheduler(self) -> PrefetchScheduler:
        return PrefetchScheduler(
            self.resolver,
            self.cache,
            self.fetch_pipeline,
            PrefetchConfig(
                preload_distance=self._settings.preload_distance,
                workers=self._settings.prefetch_workers,
                max_preload_count=self._settings.max_preload_count,
                failure_memory=self._settings.cache_max_entries,
            ),
        )

    # -------------------------------------------------------------------------
    # Transient factories
    # -------------------------------------------------------------------------

    def create_pagination_manager(self) -> PaginationManager[Any]:
        """Create a new pagination manager using the configured page size."""
        return PaginationManager(default_page_size=self._settings.page_size)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "ImagePipeline":
        if self._closed:
            raise PipelineClosedError()
        self.scheduler.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop prefetch, cancel shared fetches, clear the cache, close HTTP."""
        if self._closed:
            return
        self._closed = True

        if "scheduler" in self.__dict__:
            await self.scheduler.aclose()
        if "cache" in self.__dict__:
            await self.cache.aclose()
        if "fetcher" in self.__dict__ and self._injected_fetcher is None:
            fetcher = self.fetcher
            if isinstance(fetcher, HttpxImageFetcher):
                await fetcher.aclose()
        logger.debug("Image pipeline closed")
