"""
Pagination window manager.

Presents a large in-memory list as fixed-size pages. Page changes only move
a window over the list; nothing is re-fetched. The manager starts Idle and
becomes Loaded on ``initialize``. Navigation before that is a no-op and the
Idle window reads as page 0 of 1 with no items.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Generic, List, Optional, Tuple, TypeVar

from jellyframe.models.pagination import PageWindow

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50


class PaginationManager(Generic[T]):
    """Fixed-size page window over an immutable item list.

    Parameters
    ----------
    default_page_size : int
        Page size used by ``initialize`` when none is given.
    """

    def __init__(self, default_page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if default_page_size < 1:
            raise ValueError(f"Page size must be at least 1, got {default_page_size}")
        self._items: Tuple[T, ...] = ()
        self._page_size = default_page_size
        self._current_page = 0
        self._loaded = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def window(self) -> PageWindow:
        """Snapshot of the current page position."""
        return PageWindow(
            current_page=self._current_page,
            page_size=self._page_size,
            total_items=len(self._items),
        )

    @property
    def total_pages(self) -> int:
        # Derived from the raw fields so it is valid mid-transition
        return max(1, math.ceil(len(self._items) / self._page_size))

    @property
    def has_next(self) -> bool:
        return self._current_page < self.total_pages - 1

    @property
    def has_previous(self) -> bool:
        return self._current_page > 0

    @property
    def current_items(self) -> Tuple[T, ...]:
        """Items on the current page, in list order."""
        window = self.window
        return self._items[window.start_index : window.end_index]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize(self, items: Sequence[T], page_size: Optional[int] = None) -> None:
        """Load *items* and show the first page.

        Raises
        ------
        ValueError
            If *page_size* is given and below 1.
        """
        if page_size is not None:
            if page_size < 1:
                raise ValueError(f"Page size must be at least 1, got {page_size}")
            self._page_size = page_size
        self._items = tuple(items)
        self._current_page = 0
        self._loaded = True
        logger.debug(
            "Initialized pagination with %d items, page size %d",
            len(self._items),
            self._page_size,
        )

    def next(self) -> bool:
        """Advance one page. Returns False at the last page."""
        if not self._loaded or not self.has_next:
            return False
        self._current_page += 1
        logger.debug("Moved to page %d", self._current_page)
        return True

    def previous(self) -> bool:
        """Go back one page. Returns False at the first page."""
        if not self._loaded or not self.has_previous:
            return False
        self._current_page -= 1
        logger.debug("Moved to page %d", self._current_page)
        return True

    def go_to(self, page: int) -> bool:
        """Jump to *page*; out-of-range pages leave the state unchanged."""
        if not self._loaded or not 0 <= page < self.total_pages:
            return False
        self._current_page = page
        logger.debug("Jumped to page %d", page)
        return True

    def set_page_size(self, page_size: int) -> None:
        """Change the page size, keeping the first visible item in view.

        The new page is ``floor(old_page * old_size / page_size)`` clamped to
        the valid range.

        Raises
        ------
        ValueError
            If *page_size* is below 1.
        """
        if page_size < 1:
            raise ValueError(f"Page size must be at least 1, got {page_size}")
        if page_size == self._page_size:
            return

        first_index = self._current_page * self._page_size
        old_size = self._page_size
        self._page_size = page_size
        self._current_page = self._clamp(first_index // page_size)
        logger.debug(
            "Page size %d -> %d, now on page %d",
            old_size,
            page_size,
            self._current_page,
        )

    def reset(self) -> None:
        """Return to the first page."""
        self._current_page = 0

    def replace_items(self, items: Sequence[T]) -> None:
        """Swap in a refreshed list, staying on the same page if it exists."""
        if not self._loaded:
            self.initialize(items)
            return
        self._items = tuple(items)
        self._current_page = self._clamp(self._current_page)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def is_pagination_needed(self) -> bool:
        """True if the list does not fit on one page."""
        return len(self._items) > self._page_size

    def page_info(self) -> str:
        """Human-readable position, e.g. ``"Page 2 of 5"``."""
        if not self._items:
            return "No items"
        return f"Page {self._current_page + 1} of {self.total_pages}"

    def search_current_page(self, query: str) -> List[T]:
        """Return items on the current page whose name or overview match.

        Matching is a case-insensitive substring test.
        """
        needle = query.casefold()
        matches: List[T] = []
        for item in self.current_items:
            name = getattr(item, "name", None) or ""
            overview = getattr(item, "overview", None) or ""
            if needle in name.casefold() or needle in overview.casefold():
                matches.append(item)
        return matches

    def _clamp(self, page: int) -> int:
        return max(0, min(page, self.total_pages - 1))
