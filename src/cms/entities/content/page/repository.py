from collections import defaultdict

from sqlmodel import or_

from src.cms.core.models.pagination import PagedResult
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci

from .entity import Page, PageStatus
from .table import PageTable


class PageRepository(SoftDeleteRepository[Page, PageTable]):
    """Data-access layer for pages."""

    entity_model = Page
    table_model = PageTable

    _display_order = [PageTable.priority, PageTable.name]

    def get_by_slug(self, slug: str) -> Page | None:
        return self.first_or_default(equals_ci(PageTable.slug, slug))

    def get_published_by_slug(self, slug: str) -> Page | None:
        return self.first_or_default(
            equals_ci(PageTable.slug, slug), PageTable.status == PageStatus.PUBLISHED
        )

    def get_published_pages(self) -> list[Page]:
        return self.find(PageTable.status == PageStatus.PUBLISHED, order_by=self._display_order)

    def get_page_hierarchy(self) -> list[Page]:
        """Root pages with ``child_pages`` populated down the whole tree.

        Children of a soft-deleted page are dropped together with it.
        """
        pages = self.find(order_by=self._display_order)
        children: dict[int | None, list[Page]] = defaultdict(list)
        for page in pages:
            children[page.parent_page_id].append(page)
        for page in pages:
            page.child_pages = children.get(page.id, [])
        return children[None]

    def get_child_pages(self, parent_page_id: int) -> list[Page]:
        return self.find(PageTable.parent_page_id == parent_page_id, order_by=self._display_order)

    def get_pages_by_status(self, status: PageStatus) -> list[Page]:
        return self.find(PageTable.status == status, order_by=self._display_order)

    def slug_exists(self, slug: str, exclude_page_id: int | None = None) -> bool:
        criteria = [equals_ci(PageTable.slug, slug)]
        if exclude_page_id is not None:
            criteria.append(PageTable.id != exclude_page_id)
        return self.any_include_deleted(*criteria)

    def search_pages(self, term: str | None, page: int, page_size: int) -> PagedResult[Page]:
        criteria = []
        if term and term.strip():
            term = term.strip()
            criteria.append(
                or_(
                    contains_ci(PageTable.name, term),
                    contains_ci(PageTable.title, term),
                    contains_ci(PageTable.description, term),
                )
            )
        return self._paged(page, page_size, *criteria, order_by=self._display_order)
