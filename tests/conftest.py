"""
Pytest configuration and fixtures for jellyframe tests.
"""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from jellyframe.config.settings import Settings
from jellyframe.services.error_classifier import RetryPolicy
from jellyframe.services.image_cache import ImageCacheConfig, ImageCacheStore
from jellyframe.services.image_fetcher import FetchPool, ImageFetchPipeline
from jellyframe.services.image_loader import ImageLoadOrchestrator
from jellyframe.services.image_resolver import ImageUrlResolver
from tests.factories.fetch_response_factory import FakeImageFetcher

TEST_SERVER_URL = "http://jellyfin.test:8096"


@pytest.fixture(autouse=True)
def reset_jellyframe_logger() -> Iterator[None]:
    """Drop handlers installed by CLI invocations between tests."""
    yield
    logger = logging.getLogger("jellyframe")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def mock_settings() -> Settings:
    """Settings pointing at a test server with small budgets."""
    return Settings(
        server_url=TEST_SERVER_URL,
        api_key="test_api_key",
        cache_max_bytes=1024 * 1024,
        cache_max_entries=32,
        fetch_timeout=2.0,
        retry_attempts=2,
        retry_backoff=0.0,
        prefetch_workers=2,
    )


@pytest.fixture
def resolver() -> ImageUrlResolver:
    """Resolver for the test server without an API key."""
    return ImageUrlResolver(TEST_SERVER_URL)


@pytest.fixture
def cache() -> ImageCacheStore:
    """Cache store with room for plenty of small test images."""
    return ImageCacheStore(ImageCacheConfig(max_bytes=1024 * 1024, max_entries=64))


@pytest.fixture
def fetcher() -> FakeImageFetcher:
    """Fake network collaborator answering 404 unless routed."""
    return FakeImageFetcher()


@pytest.fixture
def fetch_pipeline(fetcher: FakeImageFetcher) -> ImageFetchPipeline:
    """Fetch pipeline over the fake fetcher."""
    return ImageFetchPipeline(fetcher, FetchPool(4), timeout=2.0)


@pytest.fixture
def orchestrator(
    resolver: ImageUrlResolver,
    cache: ImageCacheStore,
    fetch_pipeline: ImageFetchPipeline,
) -> ImageLoadOrchestrator:
    """Orchestrator with zero backoff so retries do not slow tests."""
    return ImageLoadOrchestrator(
        resolver,
        cache,
        fetch_pipeline,
        RetryPolicy(max_retries=2, backoff=0.0),
    )
