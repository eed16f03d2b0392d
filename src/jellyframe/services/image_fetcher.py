"""
Network fetch layer for server artwork.

Provides the network collaborator (``ImageFetcher`` protocol and its httpx
implementation), content-type detection via magic bytes, a bounded fetch
pool shared by on-demand loads and prefetch, and ``ImageFetchPipeline``
which turns one fetch attempt into a classified ``FetchOutcome``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field

from jellyframe.exceptions import ImageDecodeError
from jellyframe.models.image import (
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    ImagePayload,
)
from jellyframe.services.error_classifier import classify

logger = logging.getLogger(__name__)


class FetchResponse(BaseModel):
    """Raw result of a completed HTTP exchange."""

    status_code: int
    content: bytes = Field(default=b"", repr=False)
    content_type: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    model_config = ConfigDict(frozen=True)


class ImageFetcher(Protocol):
    """Network collaborator: fetch bytes and status for a URL.

    Transport failures (connection errors, timeouts) are raised, not
    returned.
    """

    async def fetch(self, url: str, *, timeout: float) -> FetchResponse: ...


class HttpxImageFetcher:
    """``ImageFetcher`` backed by a long-lived ``httpx.AsyncClient``.

    Parameters
    ----------
    client : httpx.AsyncClient | None
        Client to use. When omitted, the fetcher creates and owns one.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    async def fetch(self, url: str, *, timeout: float) -> FetchResponse:
        response = await self._client.get(url, timeout=timeout)
        return FetchResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()


# ---------------------------------------------------------------------------
# Content-type detection via magic bytes
# ---------------------------------------------------------------------------


def detect_content_type(data: bytes) -> Optional[str]:
    """Detect an image MIME type from the leading bytes of *data*.

    Returns
    -------
    str | None
        ``image/jpeg``, ``image/png``, ``image/webp``, ``image/gif``, or
        ``None`` when the bytes match no supported format.
    """
    header = data[:12]
    if header[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if header[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return "image/webp"
    if header[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    return None


def decode_image(
    content: bytes,
    content_type: Optional[str] = None,
    url: Optional[str] = None,
) -> ImagePayload:
    """Validate fetched bytes and wrap them as an ``ImagePayload``.

    Parameters
    ----------
    content : bytes
        Response body.
    content_type : str | None
        Content-Type header as reported by the server.
    url : str | None
        Source URL, for error reporting.

    Raises
    ------
    ImageDecodeError
        If the body is empty or is not a supported image format.
    """
    if not content:
        raise ImageDecodeError("Empty image payload", url=url, content_type=content_type)

    detected = detect_content_type(content)
    if detected is None:
        raise ImageDecodeError(
            f"Unrecognised image data ({len(content)} bytes)",
            url=url,
            content_type=content_type,
        )
    return ImagePayload(data=content, content_type=detected)


# ---------------------------------------------------------------------------
# Bounded fetch pool
# ---------------------------------------------------------------------------


class FetchPool:
    """Caps the number of network fetches in flight at once.

    Parameters
    ----------
    max_concurrent : int
        Maximum simultaneous fetches across all callers.
    """

    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0
        self._peak = 0

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def active(self) -> int:
        """Fetches currently holding a slot."""
        return self._active

    @property
    def peak(self) -> int:
        """Highest number of simultaneous fetches observed."""
        return self._peak

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one fetch slot for the duration of the block."""
        async with self._semaphore:
            self._active += 1
            self._peak = max(self._peak, self._active)
            try:
                yield
            finally:
                self._active -= 1


# ---------------------------------------------------------------------------
# Single classified attempt
# ---------------------------------------------------------------------------


class ImageFetchPipeline:
    """Runs one bounded, timed, classified fetch attempt for a URL.

    Parameters
    ----------
    fetcher : ImageFetcher
        Network collaborator.
    pool : FetchPool
        Shared concurrency cap.
    timeout : float
        Per-fetch timeout in seconds; expiry classifies as network.
    """

    def __init__(
        self,
        fetcher: ImageFetcher,
        pool: FetchPool,
        timeout: float = 10.0,
    ) -> None:
        self._fetcher = fetcher
        self._pool = pool
        self._timeout = timeout

    @property
    def pool(self) -> FetchPool:
        return self._pool

    async def fetch_once(self, url: str) -> FetchOutcome:
        """Fetch and decode *url* once.

        Returns
        -------
        FetchOutcome
            ``FetchSuccess`` with the decoded payload, or ``FetchFailure``
            carrying the classified error kind. Cancellation of the calling
            task propagates.
        """
        try:
            async with self._pool.slot():
                response = await asyncio.wait_for(
                    self._fetcher.fetch(url, timeout=self._timeout),
                    timeout=self._timeout,
                )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            kind = classify(exc)
            logger.info("Fetch failed for %s: %s (%s)", url, kind.value, exc)
            return FetchFailure(kind=kind, detail=str(exc) or type(exc).__name__)

        if not response.is_success:
            kind = classify(response)
            logger.info(
                "Fetch for %s returned %d (%s)",
                url,
                response.status_code,
                kind.value,
            )
            return FetchFailure(kind=kind, status_code=response.status_code)

        try:
            payload = decode_image(response.content, response.content_type, url=url)
        except ImageDecodeError as exc:
            logger.warning("Undecodable image from %s: %s", url, exc.message)
            return FetchFailure(
                kind=classify(exc),
                status_code=response.status_code,
                detail=exc.message,
            )

        logger.debug(
            "Fetched %s (%d bytes, %s)", url, payload.size_bytes, payload.content_type
        )
        return FetchSuccess(payload=payload)
