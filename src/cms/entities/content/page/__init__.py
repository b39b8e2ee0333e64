"""Entity package: Page."""

from .entity import Page, PageStatus
from .repository import PageRepository
from .table import PageTable

__all__ = ["Page", "PageStatus", "PageRepository", "PageTable"]
