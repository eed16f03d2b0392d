"""
Data models module for jellyframe.

Defines Pydantic models for catalog items, image candidates, fetch outcomes,
renderer-facing image states, and pagination windows.
"""

from __future__ import annotations

from .catalog_item import CatalogItem
from .enums import (
    AttemptDisposition,
    ContentKind,
    ErrorKind,
    ImageRole,
    PresentationContext,
)
from .image import (
    CandidateList,
    CandidateReport,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    ImageCandidate,
    ImageFailed,
    ImageLoaded,
    ImageLoading,
    ImagePayload,
    ImageState,
)
from .pagination import PageWindow

__all__ = [
    # Catalog
    "CatalogItem",
    # Enums
    "AttemptDisposition",
    "ContentKind",
    "ErrorKind",
    "ImageRole",
    "PresentationContext",
    # Image pipeline
    "CandidateList",
    "CandidateReport",
    "FetchFailure",
    "FetchOutcome",
    "FetchSuccess",
    "ImageCandidate",
    "ImageFailed",
    "ImageLoaded",
    "ImageLoading",
    "ImagePayload",
    "ImageState",
    # Pagination
    "PageWindow",
]
