"""Filter objects accepted by the paged search queries."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from src.cms.core.models.pagination import MAX_PAGE_SIZE


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SearchFilter(BaseModel):
    """Paging and ordering shared by every search."""

    search_term: str | None = Field(default=None, description="Case-insensitive text match")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)
    sort_direction: SortDirection = SortDirection.ASC

    @property
    def term(self) -> str | None:
        if self.search_term is None or not self.search_term.strip():
            return None
        return self.search_term.strip()


class CategorySearch(SearchFilter):
    parent_category_id: int | None = None
    root_only: bool = Field(default=False, description="Only categories without a parent")
    is_active: bool | None = None
    is_visible: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    updated_from: datetime | None = None
    updated_to: datetime | None = None
    sort_by: Literal["name", "created_at", "updated_at", "sort_order"] = "sort_order"


class ProductSearch(SearchFilter):
    status: str | None = None
    product_type: str | None = None
    category_ids: list[int] = Field(default_factory=list)
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)
    has_variants: bool | None = None
    vendor: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_available: bool | None = Field(
        default=None, description="In stock, untracked, or sellable when out of stock"
    )
    sort_by: Literal["name", "price", "created_at", "updated_at"] = "name"

    @model_validator(mode="after")
    def _check_price_range(self) -> "ProductSearch":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot exceed max_price")
        return self


class LocationSearch(SearchFilter):
    company_id: int | None = None
    location_type: str | None = None
    is_active: bool | None = None
    is_main_location: bool | None = None
    sort_by: Literal["name", "location_code", "created_at"] = "name"
