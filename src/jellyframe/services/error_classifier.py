"""
Fetch error classification.

Every fetch failure in the pipeline, whether an HTTP status, a transport
exception, or an undecodable payload, is mapped here into the closed
``ErrorKind`` set. Call sites then decide what to do from
``disposition(kind)`` instead of inspecting raw statuses or exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Dict, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

from jellyframe.exceptions import ImageDecodeError
from jellyframe.models.enums import AttemptDisposition, ErrorKind

if TYPE_CHECKING:
    from jellyframe.services.image_fetcher import FetchResponse

logger = logging.getLogger(__name__)

_STATUS_KINDS: Dict[int, ErrorKind] = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    410: ErrorKind.NOT_FOUND,
}

_DISPOSITIONS: Dict[ErrorKind, AttemptDisposition] = {
    ErrorKind.NOT_FOUND: AttemptDisposition.ADVANCE,
    # Corrupt data has the same remedy as a missing image
    ErrorKind.DECODE: AttemptDisposition.ADVANCE,
    ErrorKind.NETWORK: AttemptDisposition.RETRY,
    ErrorKind.UNKNOWN: AttemptDisposition.RETRY,
    ErrorKind.UNAUTHORIZED: AttemptDisposition.TERMINAL,
    ErrorKind.FORBIDDEN: AttemptDisposition.TERMINAL,
    ErrorKind.CANCELLED: AttemptDisposition.ABORT,
}

_PLACEHOLDER_LABELS: Dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "Image not available",
    ErrorKind.DECODE: "Image not available",
    ErrorKind.NETWORK: "Image not available",
    ErrorKind.UNKNOWN: "Image not available",
    ErrorKind.CANCELLED: "Image not available",
    ErrorKind.UNAUTHORIZED: "Sign-in required",
    ErrorKind.FORBIDDEN: "Access denied",
}

RawOutcome = Union[int, "FetchResponse", BaseException]


def classify_status(status_code: int) -> ErrorKind:
    """Map a non-success HTTP status code to an error kind."""
    return _STATUS_KINDS.get(status_code, ErrorKind.UNKNOWN)


def classify_exception(exc: BaseException) -> ErrorKind:
    """Map a fetch-time exception to an error kind."""
    if isinstance(exc, asyncio.CancelledError):
        return ErrorKind.CANCELLED
    if isinstance(exc, ImageDecodeError):
        return ErrorKind.DECODE
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code)
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return ErrorKind.NETWORK
    if isinstance(exc, (TimeoutError, OSError)):
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN


def classify(raw: RawOutcome) -> ErrorKind:
    """Classify a raw fetch outcome.

    Parameters
    ----------
    raw : int | FetchResponse | BaseException
        An HTTP status code, a response object with ``status_code``, or the
        exception raised while fetching or decoding.

    Returns
    -------
    ErrorKind
        The error kind for *raw*. Statuses and exceptions outside the known
        mappings classify as ``UNKNOWN``.
    """
    if isinstance(raw, BaseException):
        kind = classify_exception(raw)
    elif isinstance(raw, int):
        kind = classify_status(raw)
    else:
        kind = classify_status(raw.status_code)

    if kind is ErrorKind.UNKNOWN:
        logger.debug("Unclassified fetch outcome: %r", raw)
    return kind


def disposition(kind: ErrorKind) -> AttemptDisposition:
    """Return how the load loop should react to *kind*."""
    return _DISPOSITIONS[kind]


def describe(kind: ErrorKind) -> str:
    """Return the placeholder label the renderer shows for *kind*."""
    return _PLACEHOLDER_LABELS[kind]


class RetryPolicy(BaseModel):
    """Bounded retry with linear backoff for retryable failures.

    Attributes
    ----------
    max_retries : int
        Retries after the first attempt (default 2).
    backoff : float
        Seconds added per retry: retry *n* waits ``backoff * n``.
    """

    max_retries: int = Field(default=2, ge=0)
    backoff: float = Field(default=0.5, ge=0)

    def delay_for(self, attempt: int) -> float:
        """Return the wait before retry number *attempt* (1-based)."""
        if attempt < 1:
            return 0.0
        return self.backoff * attempt

    def allows(self, attempt: int) -> bool:
        """Return True if retry number *attempt* (1-based) may run."""
        return attempt <= self.max_retries

    model_config = ConfigDict(frozen=True)
