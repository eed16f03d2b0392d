"""
Candidate URL resolver for catalog artwork.

Maps a catalog item and a presentation context to the ordered list of
image candidates to try. Resolution is pure: no I/O, no failure modes. The
resolver, not the renderer, owns aspect-ratio policy, so every candidate
carries the target size for its role.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote, urlencode

from jellyframe.models.catalog_item import CatalogItem
from jellyframe.models.enums import ContentKind, ImageRole, PresentationContext
from jellyframe.models.image import CandidateList, ImageCandidate

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fallback order per card type, highest priority first
# ---------------------------------------------------------------------------
FALLBACK_ORDER: Dict[PresentationContext, Tuple[ImageRole, ...]] = {
    PresentationContext.LIBRARY: (
        ImageRole.PRIMARY,
        ImageRole.BACKDROP,
        ImageRole.POSTER,
    ),
    PresentationContext.EPISODE: (
        ImageRole.THUMB,
        ImageRole.BACKDROP,
        ImageRole.SERIES_POSTER,
        ImageRole.POSTER,
    ),
    PresentationContext.POSTER: (ImageRole.POSTER, ImageRole.BACKDROP),
    PresentationContext.BACKDROP: (ImageRole.BACKDROP, ImageRole.POSTER),
    PresentationContext.SQUARE: (ImageRole.SQUARE, ImageRole.POSTER),
}

# ---------------------------------------------------------------------------
# Target sizes (TV-optimised): posters 2:3, backdrops/thumbs 16:9
# ---------------------------------------------------------------------------
POSTER_SIZE = (400, 600)
BACKDROP_SIZE = (1280, 720)
THUMB_SIZE = (800, 450)
LIBRARY_SIZE = (1200, 675)
SQUARE_SIZE = (500, 500)

_ROLE_SIZES: Dict[ImageRole, Tuple[int, int]] = {
    ImageRole.PRIMARY: POSTER_SIZE,
    ImageRole.POSTER: POSTER_SIZE,
    ImageRole.SERIES_POSTER: POSTER_SIZE,
    ImageRole.BACKDROP: BACKDROP_SIZE,
    ImageRole.THUMB: THUMB_SIZE,
    ImageRole.SQUARE: SQUARE_SIZE,
}

# Library cards are landscape, so both of their landscape roles share one size
_CONTEXT_SIZES: Dict[Tuple[PresentationContext, ImageRole], Tuple[int, int]] = {
    (PresentationContext.LIBRARY, ImageRole.PRIMARY): LIBRARY_SIZE,
    (PresentationContext.LIBRARY, ImageRole.BACKDROP): LIBRARY_SIZE,
}

# Server-side image type in the URL path
_SERVER_IMAGE_TYPE: Dict[ImageRole, str] = {
    ImageRole.PRIMARY: "Primary",
    ImageRole.POSTER: "Primary",
    ImageRole.SQUARE: "Primary",
    ImageRole.SERIES_POSTER: "Primary",
    ImageRole.BACKDROP: "Backdrop",
    ImageRole.THUMB: "Thumb",
}

DEFAULT_QUALITY = 90


def context_for_kind(kind: ContentKind) -> PresentationContext:
    """Return the default card context for an item kind.

    Libraries render as library cards, episodes as landscape episode cards,
    music as square cards, and everything else as posters.
    """
    if kind is ContentKind.LIBRARY:
        return PresentationContext.LIBRARY
    if kind is ContentKind.EPISODE:
        return PresentationContext.EPISODE
    if kind in (ContentKind.ALBUM, ContentKind.ARTIST, ContentKind.SONG):
        return PresentationContext.SQUARE
    return PresentationContext.POSTER


class ImageUrlResolver:
    """Builds ordered image candidates for catalog items.

    Parameters
    ----------
    server_url : str
        Media server base URL (no trailing slash needed).
    api_key : str | None
        Access token appended as ``api_key`` when set.
    quality : int
        JPEG quality requested from the server (1-100).
    """

    def __init__(
        self,
        server_url: str,
        api_key: Optional[str] = None,
        quality: int = DEFAULT_QUALITY,
    ) -> None:
        self._server_url = server_url.rstrip("/")
        self._api_key = api_key
        self._quality = quality

    @property
    def server_url(self) -> str:
        return self._server_url

    def resolve(
        self, item: CatalogItem, context: PresentationContext
    ) -> CandidateList:
        """Return the fallback chain for *item* rendered as *context*.

        Only roles the item has a tag for are emitted, in the context's
        priority order. The chain always ends with a placeholder candidate
        for the context's ultimate fallback role.

        Parameters
        ----------
        item : CatalogItem
            Item to resolve artwork for.
        context : PresentationContext
            Card type being rendered.

        Returns
        -------
        CandidateList
            Non-empty tuple of candidates, placeholder last.
        """
        order = FALLBACK_ORDER[context]
        candidates = [
            self._build_candidate(item, context, role)
            for role in order
            if item.has_image(role)
        ]
        candidates.append(self._placeholder(context, order[-1]))

        logger.debug(
            "Resolved %d candidate(s) for %s (%s): %s",
            len(candidates),
            item.id,
            context.value,
            [c.role.value for c in candidates],
        )
        return tuple(candidates)

    def primary_candidate(
        self, item: CatalogItem, context: PresentationContext
    ) -> Optional[ImageCandidate]:
        """Return the highest-priority real candidate, or None."""
        first = self.resolve(item, context)[0]
        return None if first.is_placeholder else first

    def build_url(
        self,
        item_id: str,
        role: ImageRole,
        width: int,
        height: int,
        tag: Optional[str] = None,
    ) -> str:
        """Build a server image URL for one role and size."""
        params: Dict[str, object] = {
            "maxWidth": width,
            "maxHeight": height,
            "quality": self._quality,
        }
        if tag:
            params["tag"] = tag
        if self._api_key:
            params["api_key"] = self._api_key

        image_type = _SERVER_IMAGE_TYPE[role]
        return (
            f"{self._server_url}/Items/{quote(item_id, safe='')}/Images/"
            f"{image_type}?{urlencode(params)}"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _size_for(
        context: PresentationContext, role: ImageRole
    ) -> Tuple[int, int]:
        return _CONTEXT_SIZES.get((context, role), _ROLE_SIZES[role])

    def _build_candidate(
        self, item: CatalogItem, context: PresentationContext, role: ImageRole
    ) -> ImageCandidate:
        width, height = self._size_for(context, role)
        tag = item.image_tag(role)
        target_id = item.id
        if role is ImageRole.SERIES_POSTER and item.series_id:
            target_id = item.series_id
        return ImageCandidate(
            role=role,
            url=self.build_url(target_id, role, width, height, tag),
            width=width,
            height=height,
            quality=self._quality,
            tag=tag,
        )

    def _placeholder(
        self, context: PresentationContext, role: ImageRole
    ) -> ImageCandidate:
        width, height = self._size_for(context, role)
        return ImageCandidate(
            role=role,
            url=None,
            width=width,
            height=height,
            quality=self._quality,
        )
