"""
Load orchestrator: drives one image load through its fallback chain.

For a catalog item and card context, walks the resolved candidates in
order, fetching each through the shared cache, and reports progress to the
renderer as a stream of ``ImageState`` events: exactly one ``ImageLoading``
followed by at most one terminal event. The error classifier's disposition
decides whether a failure advances to the next candidate, retries,
stops with a typed placeholder, or ends the stream silently (cancelled).
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import List, Optional

from jellyframe.models.catalog_item import CatalogItem
from jellyframe.models.enums import AttemptDisposition, ErrorKind, PresentationContext
from jellyframe.models.image import (
    CandidateReport,
    FetchOutcome,
    FetchSuccess,
    ImageFailed,
    ImageLoaded,
    ImageLoading,
    ImageState,
)
from jellyframe.services.error_classifier import RetryPolicy, disposition
from jellyframe.services.image_cache import ImageCacheStore
from jellyframe.services.image_fetcher import ImageFetchPipeline
from jellyframe.services.image_resolver import ImageUrlResolver, context_for_kind

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class ImageLoadOrchestrator:
    """Turns a catalog item into a stream of renderer-facing image states.

    Parameters
    ----------
    resolver : ImageUrlResolver
        Builds the candidate chain.
    cache : ImageCacheStore
        Shared store; all fetches go through its single-flight path.
    pipeline : ImageFetchPipeline
        Performs one classified fetch attempt.
    retry_policy : RetryPolicy | None
        Retry budget and backoff for retryable failures.
    sleep : Callable[[float], Awaitable[None]]
        Backoff sleeper, replaceable in tests.
    """

    def __init__(
        self,
        resolver: ImageUrlResolver,
        cache: ImageCacheStore,
        pipeline: ImageFetchPipeline,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._resolver = resolver
        self._cache = cache
        self._pipeline = pipeline
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def load_image(
        self,
        item: CatalogItem,
        context: Optional[PresentationContext] = None,
    ) -> AsyncIterator[ImageState]:
        """Load the best available image for *item*.

        Parameters
        ----------
        item : CatalogItem
            Item to load artwork for.
        context : PresentationContext | None
            Card type; defaults to the usual card for the item kind.

        Yields
        ------
        ImageState
            ``ImageLoading`` first, then ``ImageLoaded`` or ``ImageFailed``.
            A cancelled load ends after ``ImageLoading``. While the consumer
            holds an ``ImageLoaded`` event its cache entry stays pinned;
            the pin is released when the consumer resumes the stream or
            closes it.
        """
        context = context or context_for_kind(item.kind)
        yield ImageLoading(item_id=item.id)

        for candidate in self._resolver.resolve(item, context):
            if candidate.is_placeholder:
                logger.info(
                    "No image available for %s (%s)", item.id, context.value
                )
                yield ImageFailed(item_id=item.id, kind=ErrorKind.NOT_FOUND)
                return

            url = candidate.url
            assert url is not None
            outcome = await self._fetch_with_retry(url)

            if isinstance(outcome, FetchSuccess):
                # Evicted between the fetch and the lease: store it again
                if not self._cache.contains(url):
                    self._cache.put(url, outcome.payload)
                with self._cache.lease(url) as entry:
                    payload = entry.payload if entry is not None else outcome.payload
                    yield ImageLoaded(
                        item_id=item.id,
                        url=url,
                        role=candidate.role,
                        payload=payload,
                    )
                return

            action = disposition(outcome.kind)
            if action is AttemptDisposition.TERMINAL:
                logger.warning(
                    "Image load for %s stopped: %s (HTTP %s)",
                    item.id,
                    outcome.kind.value,
                    outcome.status_code,
                )
                yield ImageFailed(item_id=item.id, kind=outcome.kind)
                return
            if action is AttemptDisposition.ABORT:
                logger.debug("Image load for %s cancelled", item.id)
                return

            logger.debug(
                "Candidate %s for %s failed (%s); trying next",
                candidate.role.value,
                item.id,
                outcome.kind.value,
            )

    async def load(
        self,
        item: CatalogItem,
        context: Optional[PresentationContext] = None,
    ) -> Optional[ImageState]:
        """Run ``load_image`` to completion and return its terminal state.

        Returns ``None`` when the load was cancelled.
        """
        terminal: Optional[ImageState] = None
        stream = self.load_image(item, context)
        try:
            async for state in stream:
                if state.is_terminal:
                    terminal = state
        finally:
            await stream.aclose()
        return terminal

    async def probe(
        self,
        item: CatalogItem,
        context: Optional[PresentationContext] = None,
    ) -> List[CandidateReport]:
        """Fetch every real candidate once and report each result.

        Unlike ``load_image`` this does not stop at the first success and
        bypasses the cache, so it shows what the server returns for each URL.
        """
        context = context or context_for_kind(item.kind)
        reports: List[CandidateReport] = []
        for candidate in self._resolver.resolve(item, context):
            if candidate.url is None:
                continue
            outcome = await self._pipeline.fetch_once(candidate.url)
            if isinstance(outcome, FetchSuccess):
                reports.append(
                    CandidateReport(
                        role=candidate.role,
                        url=candidate.url,
                        ok=True,
                        size_bytes=outcome.payload.size_bytes,
                        content_type=outcome.payload.content_type,
                    )
                )
            else:
                reports.append(
                    CandidateReport(
                        role=candidate.role,
                        url=candidate.url,
                        ok=False,
                        kind=outcome.kind,
                        status_code=outcome.status_code,
                    )
                )
        return reports

    async def _fetch_with_retry(self, url: str) -> FetchOutcome:
        """Fetch *url*, retrying retryable failures within the policy."""
        loader = functools.partial(self._pipeline.fetch_once, url)
        retries = 0
        while True:
            outcome = await self._cache.get_or_fetch(url, loader)
            if isinstance(outcome, FetchSuccess):
                return outcome
            if disposition(outcome.kind) is not AttemptDisposition.RETRY:
                return outcome
            if not self._retry_policy.allows(retries + 1):
                logger.info(
                    "Giving up on %s after %d retr%s (%s)",
                    url,
                    retries,
                    "y" if retries == 1 else "ies",
                    outcome.kind.value,
                )
                return outcome
            retries += 1
            delay = self._retry_policy.delay_for(retries)
            logger.debug("Retrying %s in %.2fs (retry %d)", url, delay, retries)
            await self._sleep(delay)
