"""
Pagination models.

Defines the immutable page window snapshot exposed by the pagination
manager.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PageWindow(BaseModel):
    """Current page position over an in-memory item list.

    ``current_page`` always satisfies
    ``0 <= current_page < max(1, ceil(total_items / page_size))``.
    """

    current_page: int = Field(default=0, ge=0)
    page_size: int = Field(..., ge=1)
    total_items: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_page_in_range(self) -> "PageWindow":
        """Reject a page index beyond the last page."""
        if self.current_page >= self.total_pages:
            raise ValueError(
                f"Page {self.current_page} out of range for "
                f"{self.total_pages} page(s)"
            )
        return self

    @property
    def total_pages(self) -> int:
        """Number of pages; an empty list still has one (empty) page."""
        return max(1, math.ceil(self.total_items / self.page_size))

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages - 1

    @property
    def has_previous(self) -> bool:
        return self.current_page > 0

    @property
    def start_index(self) -> int:
        """Index of the first item on the current page."""
        return min(self.current_page * self.page_size, self.total_items)

    @property
    def end_index(self) -> int:
        """Exclusive end index of the current page."""
        return min(self.start_index + self.page_size, self.total_items)

    model_config = ConfigDict(frozen=True)
