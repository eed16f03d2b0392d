"""
Services module for jellyframe.

Contains the image pipeline services: candidate resolution, fetch error
classification, network fetching, the shared cache store, prefetch
scheduling, pagination, and the load orchestrator.
"""

from __future__ import annotations

from jellyframe.services.catalog import find_item, load_catalog
from jellyframe.services.error_classifier import (
    RetryPolicy,
    classify,
    describe,
    disposition,
)
from jellyframe.services.image_cache import (
    CacheEntry,
    CacheStats,
    ImageCacheConfig,
    ImageCacheStore,
)
from jellyframe.services.image_fetcher import (
    FetchPool,
    FetchResponse,
    HttpxImageFetcher,
    ImageFetcher,
    ImageFetchPipeline,
)
from jellyframe.services.image_loader import ImageLoadOrchestrator
from jellyframe.services.image_resolver import ImageUrlResolver, context_for_kind
from jellyframe.services.pagination import PaginationManager
from jellyframe.services.prefetch import (
    PrefetchConfig,
    PrefetchScheduler,
    PrefetchStats,
)

__all__: list[str] = [
    "CacheEntry",
    "CacheStats",
    "FetchPool",
    "FetchResponse",
    "HttpxImageFetcher",
    "ImageCacheConfig",
    "ImageCacheStore",
    "ImageFetchPipeline",
    "ImageFetcher",
    "ImageLoadOrchestrator",
    "ImageUrlResolver",
    "PaginationManager",
    "PrefetchConfig",
    "PrefetchScheduler",
    "PrefetchStats",
    "RetryPolicy",
    "classify",
    "context_for_kind",
    "describe",
    "disposition",
    "find_item",
    "load_catalog",
]
