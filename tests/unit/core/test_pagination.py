"""Unit tests for pagination helpers."""

import pytest

from src.cms.core.exceptions import EntityValidationError
from src.cms.core.models.pagination import MAX_PAGE_SIZE, PagedResult, validate_pagination


class TestValidatePagination:
    """Bounds checks applied before every paged query."""

    @pytest.mark.parametrize(
        ("page", "page_size", "message"),
        [
            (0, 10, "Page number must be greater than 0"),
            (-3, 10, "Page number must be greater than 0"),
            (1, 0, "Page size must be greater than 0"),
            (1, MAX_PAGE_SIZE + 1, "Page size cannot exceed 1000"),
        ],
    )
    def test_rejects_out_of_range(self, page, page_size, message):
        """Should reject page numbers and sizes outside the allowed range."""
        with pytest.raises(EntityValidationError, match=message):
            validate_pagination(page, page_size)

    def test_accepts_boundaries(self):
        """Should accept the first page and the largest page size."""
        validate_pagination(1, 1)
        validate_pagination(1, MAX_PAGE_SIZE)


class TestPagedResult:
    """Page metadata and the in-memory slicing constructor."""

    def test_create_slices_items(self):
        """Should slice the requested page out of the full sequence."""
        result = PagedResult.create(list(range(1, 26)), page_number=2, page_size=10)

        assert result.data == list(range(11, 21))
        assert result.total_count == 25
        assert result.total_pages == 3
        assert result.has_previous_page is True
        assert result.has_next_page is True
        assert result.first_item_index == 11
        assert result.last_item_index == 20

    def test_last_page_is_partial(self):
        """Should return the remainder on the last page."""
        result = PagedResult.create(list(range(25)), page_number=3, page_size=10)

        assert len(result.data) == 5
        assert result.has_next_page is False
        assert result.last_item_index == 25

    def test_page_past_the_end_is_empty(self):
        """Should return no items when the page lies beyond the data."""
        result = PagedResult.create([1, 2, 3], page_number=5, page_size=10)

        assert result.data == []
        assert result.total_count == 3

    def test_create_validates_bounds(self):
        """Should validate the page before slicing."""
        with pytest.raises(EntityValidationError):
            PagedResult.create([1, 2, 3], page_number=0, page_size=10)

    def test_empty(self):
        """Should describe an empty result set."""
        result = PagedResult.empty(page_size=20)

        assert result.data == []
        assert result.total_pages == 0
        assert result.first_item_index == 0
        assert result.last_item_index == 0
        assert result.has_previous_page is False
        assert result.has_next_page is False

    def test_map_keeps_metadata(self):
        """Should convert items while keeping the paging metadata."""
        result = PagedResult.create([1, 2, 3, 4], page_number=2, page_size=2).map(str)

        assert result.data == ["3", "4"]
        assert result.page_number == 2
        assert result.page_size == 2
        assert result.total_count == 4

    def test_serializes_computed_fields(self):
        """Should include the derived pager fields when dumped."""
        dumped = PagedResult.create([1, 2, 3], page_number=1, page_size=2).model_dump()

        assert dumped["total_pages"] == 2
        assert dumped["has_next_page"] is True
