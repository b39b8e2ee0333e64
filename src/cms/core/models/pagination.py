"""Offset pagination helpers shared by every paged repository query."""

import math
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, computed_field

from src.cms.core.exceptions import EntityValidationError

T = TypeVar("T")

MAX_PAGE_SIZE = 1000


def validate_pagination(page: int, page_size: int) -> None:
    """Reject page numbers below 1 and page sizes outside 1..MAX_PAGE_SIZE."""
    if page < 1:
        raise EntityValidationError("Page number must be greater than 0")
    if page_size < 1:
        raise EntityValidationError("Page size must be greater than 0")
    if page_size > MAX_PAGE_SIZE:
        raise EntityValidationError(f"Page size cannot exceed {MAX_PAGE_SIZE}")


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


class PagedResult(BaseModel, Generic[T]):
    """One page of results plus enough metadata to render a pager."""

    data: list[T] = Field(default_factory=list, description="Items on this page")
    page_number: int = Field(default=1, description="1-based page number")
    page_size: int = Field(default=10, description="Requested page size")
    total_count: int = Field(default=0, description="Total matching items")

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @computed_field
    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @computed_field
    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    @computed_field
    @property
    def first_item_index(self) -> int:
        if self.total_count == 0:
            return 0
        return page_offset(self.page_number, self.page_size) + 1

    @computed_field
    @property
    def last_item_index(self) -> int:
        return min(self.page_number * self.page_size, self.total_count)

    @classmethod
    def create(cls, items: Sequence[T], page_number: int, page_size: int) -> "PagedResult[T]":
        """Slice an already materialised sequence into a single page."""
        validate_pagination(page_number, page_size)
        offset = page_offset(page_number, page_size)
        return cls(
            data=list(items[offset:offset + page_size]),
            page_number=page_number,
            page_size=page_size,
            total_count=len(items),
        )

    @classmethod
    def empty(cls, page_number: int = 1, page_size: int = 10) -> "PagedResult[T]":
        return cls(data=[], page_number=page_number, page_size=page_size, total_count=0)

    def map(self, converter: Callable[[T], Any]) -> "PagedResult[Any]":
        """Return a page with the same metadata and converted items."""
        return PagedResult[Any](
            data=[converter(item) for item in self.data],
            page_number=self.page_number,
            page_size=self.page_size,
            total_count=self.total_count,
        )
