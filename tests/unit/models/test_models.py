"""
Tests for jellyframe Pydantic models.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from jellyframe.models import (
    CatalogItem,
    ContentKind,
    ErrorKind,
    FetchFailure,
    FetchSuccess,
    ImageCandidate,
    ImageFailed,
    ImageLoaded,
    ImageLoading,
    ImagePayload,
    ImageRole,
    PageWindow,
)
from tests.factories.catalog_item_factory import CatalogItemFactory, CatalogTestData
from tests.factories.fetch_response_factory import PNG_BYTES


class TestCatalogItem:
    """Test CatalogItem model."""

    @pytest.mark.parametrize("item_id", CatalogTestData.VALID_ITEM_IDS)
    def test_valid_ids(self, item_id: str) -> None:
        """Test valid item ids are accepted."""
        assert CatalogItem(id=item_id).id == item_id

    @pytest.mark.parametrize("item_id", CatalogTestData.INVALID_ITEM_IDS)
    def test_blank_ids_rejected(self, item_id: str) -> None:
        """Test empty and whitespace ids are rejected."""
        with pytest.raises(ValidationError):
            CatalogItem(id=item_id)

    def test_id_is_stripped(self) -> None:
        """Test surrounding whitespace is removed from ids."""
        assert CatalogItem(id="  abc ").id == "abc"

    def test_defaults(self) -> None:
        """Test default kind, name and tags."""
        item = CatalogItem(id="abc")

        assert item.kind is ContentKind.OTHER
        assert item.name == ""
        assert item.image_tags == {}

    def test_has_image(self) -> None:
        """Test has_image requires a non-empty tag."""
        item = CatalogItemFactory(
            image_tags={ImageRole.PRIMARY: "p", ImageRole.BACKDROP: "", ImageRole.THUMB: None}
        )

        assert item.has_image(ImageRole.PRIMARY)
        assert not item.has_image(ImageRole.BACKDROP)
        assert not item.has_image(ImageRole.THUMB)
        assert not item.has_image(ImageRole.POSTER)
        assert item.image_tag(ImageRole.BACKDROP) is None

    def test_tags_from_json_values(self) -> None:
        """Test role keys validate from their string values."""
        item = CatalogItem.model_validate(
            {"id": "abc", "kind": "episode", "image_tags": {"series_poster": "sp"}}
        )

        assert item.kind is ContentKind.EPISODE
        assert item.has_image(ImageRole.SERIES_POSTER)

    def test_immutable(self) -> None:
        """Test items cannot be mutated in place."""
        item = CatalogItemFactory()

        with pytest.raises(ValidationError):
            item.name = "changed"


class TestImageModels:
    """Test candidate, payload, outcome and state models."""

    def test_placeholder_candidate(self) -> None:
        """Test a candidate without URL is the placeholder."""
        candidate = ImageCandidate(
            role=ImageRole.POSTER, width=400, height=600, quality=90
        )

        assert candidate.is_placeholder

    @pytest.mark.parametrize(
        "field,value", [("width", 0), ("height", -1), ("quality", 0), ("quality", 101)]
    )
    def test_candidate_validation(self, field: str, value: int) -> None:
        """Test sizes must be positive and quality within 1-100."""
        data = {"role": ImageRole.POSTER, "width": 400, "height": 600, "quality": 90}
        data[field] = value

        with pytest.raises(ValidationError):
            ImageCandidate(**data)

    def test_payload_size(self) -> None:
        """Test payload size is its byte length."""
        assert ImagePayload(data=PNG_BYTES, content_type="image/png").size_bytes == len(
            PNG_BYTES
        )

    def test_outcome_tags(self) -> None:
        """Test success and failure carry their ok tag."""
        payload = ImagePayload(data=PNG_BYTES, content_type="image/png")

        assert FetchSuccess(payload=payload).ok is True
        failure = FetchFailure(kind=ErrorKind.NOT_FOUND, status_code=404)
        assert failure.ok is False
        assert failure.status_code == 404

    def test_state_terminal_flags(self) -> None:
        """Test only loaded and failed states are terminal."""
        payload = ImagePayload(data=PNG_BYTES, content_type="image/png")

        assert not ImageLoading(item_id="a").is_terminal
        assert ImageLoaded(
            item_id="a", url="http://x", role=ImageRole.POSTER, payload=payload
        ).is_terminal
        assert ImageFailed(item_id="a", kind=ErrorKind.NOT_FOUND).is_terminal

    def test_state_discriminators(self) -> None:
        """Test each state serializes its state tag."""
        assert ImageLoading(item_id="a").model_dump()["state"] == "loading"
        assert (
            ImageFailed(item_id="a", kind=ErrorKind.FORBIDDEN).model_dump()["state"]
            == "error"
        )


class TestPageWindow:
    """Test PageWindow model."""

    def test_empty_list_has_one_page(self) -> None:
        """Test zero items still give one page."""
        window = PageWindow(page_size=10)

        assert window.total_pages == 1
        assert not window.has_next
        assert not window.has_previous
        assert (window.start_index, window.end_index) == (0, 0)

    def test_last_partial_page(self) -> None:
        """Test indices of a partial last page."""
        window = PageWindow(current_page=2, page_size=10, total_items=25)

        assert window.total_pages == 3
        assert (window.start_index, window.end_index) == (20, 25)
        assert window.has_previous
        assert not window.has_next

    def test_page_out_of_range_rejected(self) -> None:
        """Test current_page must be below total_pages."""
        with pytest.raises(ValidationError):
            PageWindow(current_page=3, page_size=10, total_items=25)

    def test_page_size_must_be_positive(self) -> None:
        """Test page_size below 1 is rejected."""
        with pytest.raises(ValidationError):
            PageWindow(page_size=0)
