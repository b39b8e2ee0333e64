"""Category repository.

The tree is small enough to assemble in memory: ``get_category_tree`` loads
every live category once and links parents to children, so a soft-deleted
category hides its whole subtree.
"""

from collections import defaultdict

from sqlalchemy import func
from sqlmodel import or_, select

from src.cms.core.models.pagination import PagedResult
from src.cms.core.models.search import CategorySearch, SortDirection
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci

from .entity import Category
from .table import CategoryTable

_SORT_COLUMNS = {
    "name": CategoryTable.name,
    "created_at": CategoryTable.created_at,
    "updated_at": CategoryTable.updated_at,
    "sort_order": CategoryTable.sort_order,
}


class CategoryRepository(SoftDeleteRepository[Category, CategoryTable]):
    """Data-access layer for the category tree."""

    entity_model = Category
    table_model = CategoryTable

    _display_order = [CategoryTable.sort_order, CategoryTable.name]

    def get_by_slug(self, slug: str) -> Category | None:
        return self.first_or_default(equals_ci(CategoryTable.slug, slug))

    def get_root_categories(self) -> list[Category]:
        return self.find(CategoryTable.parent_category_id == None, order_by=self._display_order)  # noqa: E711

    def get_sub_categories(self, parent_category_id: int) -> list[Category]:
        return self.find(
            CategoryTable.parent_category_id == parent_category_id,
            order_by=self._display_order,
        )

    def _link_tree(self) -> dict[int | None, list[Category]]:
        categories = self.find(order_by=self._display_order)
        children: dict[int | None, list[Category]] = defaultdict(list)
        for category in categories:
            children[category.parent_category_id].append(category)
        for category in categories:
            category.sub_categories = children.get(category.id, [])
        return children

    def get_category_tree(self) -> list[Category]:
        return self._link_tree()[None]

    def get_with_sub_categories(self, category_id: int) -> Category | None:
        """Return a category with its live subtree populated."""
        for categories in self._link_tree().values():
            for category in categories:
                if category.id == category_id:
                    return category
        return None

    def has_sub_categories(self, category_id: int) -> bool:
        return self.any(CategoryTable.parent_category_id == category_id)

    def get_descendant_ids(self, category_id: int) -> list[int]:
        """Ids of every live category below ``category_id``, breadth first."""
        descendants: list[int] = []
        seen = {category_id}
        frontier = [category_id]
        while frontier:
            statement = select(CategoryTable.id).where(
                CategoryTable.parent_category_id.in_(frontier),
                CategoryTable.is_deleted == False,  # noqa: E712
            )
            frontier = [child for child in self._session.exec(statement).all() if child not in seen]
            seen.update(frontier)
            descendants.extend(frontier)
        return descendants

    def is_descendant_of(self, category_id: int, ancestor_id: int) -> bool:
        """True when ``ancestor_id`` appears on the parent chain of ``category_id``."""
        seen: set[int] = set()
        current = self._get_row(category_id, include_deleted=True)
        while current is not None and current.parent_category_id is not None:
            if current.parent_category_id == ancestor_id:
                return True
            if current.parent_category_id in seen:
                break
            seen.add(current.parent_category_id)
            current = self._get_row(current.parent_category_id, include_deleted=True)
        return False

    def slug_exists(self, slug: str, exclude_category_id: int | None = None) -> bool:
        criteria = [equals_ci(CategoryTable.slug, slug)]
        if exclude_category_id is not None:
            criteria.append(CategoryTable.id != exclude_category_id)
        return self.any_include_deleted(*criteria)

    @staticmethod
    def _term_criterion(term: str):
        return or_(
            contains_ci(CategoryTable.name, term),
            contains_ci(CategoryTable.description, term),
            contains_ci(CategoryTable.short_description, term),
        )

    def search_categories(self, term: str | None, page: int, page_size: int) -> PagedResult[Category]:
        criteria = []
        if term and term.strip():
            criteria.append(self._term_criterion(term.strip()))
        return self._paged(page, page_size, *criteria, order_by=self._display_order)

    def get_product_count(self, category_id: int, include_sub_categories: bool = False) -> int:
        """Number of live products assigned to the category (and optionally its subtree)."""
        from src.cms.entities.service.product.table import ProductCategoryTable, ProductTable

        category_ids = [category_id]
        if include_sub_categories:
            category_ids.extend(self.get_descendant_ids(category_id))

        statement = (
            select(func.count(func.distinct(ProductCategoryTable.product_id)))
            .join(ProductTable, ProductTable.id == ProductCategoryTable.product_id)
            .where(
                ProductCategoryTable.category_id.in_(category_ids),
                ProductTable.is_deleted == False,  # noqa: E712
            )
        )
        return self._session.exec(statement).one()

    def can_delete(self, category_id: int) -> bool:
        return not self.has_sub_categories(category_id) and self.get_product_count(category_id) == 0

    def get_root_categories_paged(self, page: int, page_size: int) -> PagedResult[Category]:
        return self._paged(
            page,
            page_size,
            CategoryTable.parent_category_id == None,  # noqa: E711
            order_by=self._display_order,
        )

    def get_sub_categories_paged(
        self, parent_category_id: int, page: int, page_size: int
    ) -> PagedResult[Category]:
        return self._paged(
            page,
            page_size,
            CategoryTable.parent_category_id == parent_category_id,
            order_by=self._display_order,
        )

    def search_categories_paged(self, filters: CategorySearch) -> PagedResult[Category]:
        criteria = []
        if filters.term:
            criteria.append(self._term_criterion(filters.term))
        if filters.root_only:
            criteria.append(CategoryTable.parent_category_id == None)  # noqa: E711
        elif filters.parent_category_id is not None:
            criteria.append(CategoryTable.parent_category_id == filters.parent_category_id)
        if filters.is_active is not None:
            criteria.append(CategoryTable.is_active == filters.is_active)
        if filters.is_visible is not None:
            criteria.append(CategoryTable.is_visible == filters.is_visible)
        if filters.created_from is not None:
            criteria.append(CategoryTable.created_at >= filters.created_from)
        if filters.created_to is not None:
            criteria.append(CategoryTable.created_at <= filters.created_to)
        if filters.updated_from is not None:
            criteria.append(CategoryTable.updated_at >= filters.updated_from)
        if filters.updated_to is not None:
            criteria.append(CategoryTable.updated_at <= filters.updated_to)

        column = _SORT_COLUMNS[filters.sort_by]
        order = column.desc() if filters.sort_direction is SortDirection.DESC else column.asc()
        return self._paged(
            filters.page, filters.page_size, *criteria, order_by=[order, CategoryTable.id]
        )
