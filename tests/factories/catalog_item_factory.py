"""
Factory definitions for catalog item models.

Provides factory-boy factories for creating test instances of catalog items
with realistic and consistent test data.
"""

from __future__ import annotations

import factory

from jellyframe.models.catalog_item import CatalogItem
from jellyframe.models.enums import ContentKind, ImageRole


class CatalogItemFactory(factory.Factory):
    """Factory for CatalogItem models with a primary image."""

    class Meta:
        model = CatalogItem

    id = factory.Sequence(lambda n: f"f3a1c2d4e5b6{n:08x}")
    kind = ContentKind.MOVIE
    name = factory.Faker("sentence", nb_words=3)
    overview = factory.Faker("paragraph", nb_sentences=2)
    series_id = None
    image_tags = factory.LazyFunction(lambda: {ImageRole.PRIMARY: "a1b2c3"})


class MovieItemFactory(CatalogItemFactory):
    """Movie with primary, poster and backdrop artwork."""

    kind = ContentKind.MOVIE
    image_tags = factory.LazyFunction(
        lambda: {
            ImageRole.PRIMARY: "prim01",
            ImageRole.POSTER: "post01",
            ImageRole.BACKDROP: "back01",
        }
    )


class EpisodeItemFactory(CatalogItemFactory):
    """Episode belonging to a series."""

    kind = ContentKind.EPISODE
    series_id = "series0001"
    image_tags = factory.LazyFunction(
        lambda: {
            ImageRole.THUMB: "thumb01",
            ImageRole.BACKDROP: "back01",
            ImageRole.SERIES_POSTER: "spost01",
        }
    )


class LibraryItemFactory(CatalogItemFactory):
    """Library (collection folder) card."""

    kind = ContentKind.LIBRARY
    name = "Movies"
    image_tags = factory.LazyFunction(lambda: {ImageRole.PRIMARY: "lib01"})


class CatalogTestData:
    """Common test data for catalog tests."""

    VALID_ITEM_IDS = [
        "f3a1c2d4e5b600000001",
        "0c9e8f7a6b5d4c3b2a19",
        "item-with-dash",
    ]

    INVALID_ITEM_IDS = ["", "   "]
