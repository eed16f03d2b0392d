"""
Image pipeline models.

Defines Pydantic models for resolved image candidates, decoded payloads,
fetch outcomes, and the state events emitted to the renderer.
"""

from __future__ import annotations

from typing import Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import ErrorKind, ImageRole


class ImageCandidate(BaseModel):
    """One image considered during resolution.

    The last candidate of every chain is a placeholder with ``url=None``;
    reaching it means no real image is left to try.
    """

    role: ImageRole
    url: Optional[str] = Field(default=None, description="None for the placeholder")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    quality: int = Field(..., ge=1, le=100)
    tag: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        """True for the terminal no-image descriptor."""
        return self.url is None

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height of the requested size."""
        return self.width / self.height

    model_config = ConfigDict(frozen=True)


CandidateList = Tuple[ImageCandidate, ...]


class ImagePayload(BaseModel):
    """Decoded image bytes with the sniffed content type."""

    data: bytes = Field(..., repr=False)
    content_type: str

    @property
    def size_bytes(self) -> int:
        """Payload size used for cache budgeting."""
        return len(self.data)

    model_config = ConfigDict(frozen=True)


class FetchSuccess(BaseModel):
    """A fetch attempt that produced a decoded image."""

    ok: Literal[True] = True
    payload: ImagePayload

    model_config = ConfigDict(frozen=True)


class FetchFailure(BaseModel):
    """A fetch attempt that failed, classified into an error kind."""

    ok: Literal[False] = False
    kind: ErrorKind
    status_code: Optional[int] = None
    detail: Optional[str] = None

    model_config = ConfigDict(frozen=True)


FetchOutcome = Union[FetchSuccess, FetchFailure]


class ImageLoading(BaseModel):
    """Emitted once at the start of every load."""

    state: Literal["loading"] = "loading"
    item_id: str

    @property
    def is_terminal(self) -> bool:
        return False

    model_config = ConfigDict(frozen=True)


class ImageLoaded(BaseModel):
    """Terminal state: an image is ready to display."""

    state: Literal["success"] = "success"
    item_id: str
    url: str
    role: ImageRole
    payload: ImagePayload

    @property
    def is_terminal(self) -> bool:
        return True

    model_config = ConfigDict(frozen=True)


class ImageFailed(BaseModel):
    """Terminal state: show a typed placeholder for *kind*."""

    state: Literal["error"] = "error"
    item_id: str
    kind: ErrorKind

    @property
    def is_terminal(self) -> bool:
        return True

    model_config = ConfigDict(frozen=True)


ImageState = Union[ImageLoading, ImageLoaded, ImageFailed]


class CandidateReport(BaseModel):
    """Result of probing a single candidate URL."""

    role: ImageRole
    url: str
    ok: bool
    kind: Optional[ErrorKind] = None
    status_code: Optional[int] = None
    size_bytes: Optional[int] = None
    content_type: Optional[str] = None

    model_config = ConfigDict(frozen=True)
