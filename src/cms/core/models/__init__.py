"""Shared models used across repositories and services."""

from .pagination import MAX_PAGE_SIZE, PagedResult, validate_pagination
from .search import CategorySearch, LocationSearch, ProductSearch, SortDirection

__all__ = [
    "MAX_PAGE_SIZE",
    "PagedResult",
    "validate_pagination",
    "CategorySearch",
    "LocationSearch",
    "ProductSearch",
    "SortDirection",
]
