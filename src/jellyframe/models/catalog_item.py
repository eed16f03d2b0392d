"""
Catalog item models.

Defines the immutable view of a media server item that the image pipeline
consumes. Items are replaced wholesale on refresh, never mutated.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ContentKind, ImageRole


class CatalogItem(BaseModel):
    """A catalog entry with the image tags the server claims to have."""

    id: str = Field(..., min_length=1, description="Opaque server item id")
    kind: ContentKind = Field(default=ContentKind.OTHER, description="Content kind")
    name: str = Field(default="", description="Display name")
    overview: Optional[str] = Field(default=None, description="Synopsis text")
    series_id: Optional[str] = Field(
        default=None, description="Owning series id, used for series posters"
    )
    image_tags: Dict[ImageRole, Optional[str]] = Field(
        default_factory=dict,
        description="Image role to opaque tag; a tag means the image exists",
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate item id."""
        if not v.strip():
            raise ValueError("Item id cannot be blank")
        return v.strip()

    def has_image(self, role: ImageRole) -> bool:
        """Return True when the server reports an image for *role*."""
        return bool(self.image_tags.get(role))

    def image_tag(self, role: ImageRole) -> Optional[str]:
        """Return the tag for *role*, or None when absent."""
        tag = self.image_tags.get(role)
        return tag or None

    model_config = ConfigDict(frozen=True)
