"""Product repository.

Category membership lives in ``product_categories``; category filters are
expressed as EXISTS subqueries so paging and counting stay on the products
table.
"""

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any

from loguru import logger
from sqlalchemy import delete, func, update
from sqlmodel import and_, not_, or_, select

from src.cms.core.exceptions import EntityValidationError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.models.search import ProductSearch, SortDirection
from src.cms.entities.content.category.repository import CategoryRepository
from src.cms.entities.content.category.table import CategoryTable
from src.cms.entities.core._base import utc_now
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci
from src.cms.entities.service.product_variant.repository import ProductVariantRepository

from .entity import Product, ProductCategory, ProductImage, ProductStatus, ProductType, split_tags
from .table import ProductCategoryTable, ProductImageTable, ProductTable

_SORT_COLUMNS = {
    "name": ProductTable.name,
    "price": ProductTable.price,
    "created_at": ProductTable.created_at,
    "updated_at": ProductTable.updated_at,
}


def _parse_enum(enum_type: type[Enum], value: Any) -> Any:
    if isinstance(value, enum_type):
        return value
    for member in enum_type:
        if str(value).lower() in (member.value.lower(), member.name.lower()):
            return member
    raise EntityValidationError(f"Invalid {enum_type.__name__}: {value}")


def _in_categories(category_ids: Iterable[int]) -> Any:
    return (
        select(ProductCategoryTable.id)
        .where(
            ProductCategoryTable.product_id == ProductTable.id,
            ProductCategoryTable.category_id.in_(list(category_ids)),
            ProductCategoryTable.is_deleted == False,  # noqa: E712
        )
        .exists()
    )


def _available() -> Any:
    return and_(
        ProductTable.status == ProductStatus.ACTIVE,
        or_(
            ProductTable.quantity > 0,
            ProductTable.continue_selling_when_out_of_stock == True,  # noqa: E712
            ProductTable.has_variants == True,  # noqa: E712
            ProductTable.track_quantity == False,  # noqa: E712
        ),
    )


class ProductRepository(SoftDeleteRepository[Product, ProductTable]):
    """Data-access layer for the product catalogue."""

    entity_model = Product
    table_model = ProductTable

    @property
    def _images(self) -> SoftDeleteRepository[ProductImage, ProductImageTable]:
        return SoftDeleteRepository(self._session, ProductImage, ProductImageTable)

    @property
    def _links(self) -> SoftDeleteRepository[ProductCategory, ProductCategoryTable]:
        return SoftDeleteRepository(self._session, ProductCategory, ProductCategoryTable)

    # ------------------------------------------------------------------
    # Lookups and loaders
    # ------------------------------------------------------------------

    def get_by_slug(self, slug: str) -> Product | None:
        return self.first_or_default(equals_ci(ProductTable.slug, slug))

    def get_by_sku(self, sku: str) -> Product | None:
        return self.first_or_default(equals_ci(ProductTable.sku, sku))

    def _load_variants(self, product: Product) -> None:
        product.variants = ProductVariantRepository(self._session).get_by_product_id(product.id)

    def _load_images(self, product: Product) -> None:
        product.images = self._images.find(
            ProductImageTable.product_id == product.id,
            order_by=[ProductImageTable.position, ProductImageTable.id],
        )

    def _load_categories(self, product: Product) -> None:
        links = self._links.find(
            ProductCategoryTable.product_id == product.id,
            order_by=[ProductCategoryTable.sort_order, ProductCategoryTable.id],
        )
        categories = {
            category.id: category
            for category in CategoryRepository(self._session).get_by_ids(
                link.category_id for link in links
            )
        }
        product.categories = [
            categories[link.category_id] for link in links if link.category_id in categories
        ]

    def get_with_details(self, product_id: int) -> Product | None:
        product = self.get_by_id(product_id)
        if product is not None:
            self._load_variants(product)
            self._load_images(product)
            self._load_categories(product)
        return product

    def get_with_variants(self, product_id: int) -> Product | None:
        product = self.get_by_id(product_id)
        if product is not None:
            self._load_variants(product)
        return product

    def get_with_categories(self, product_id: int) -> Product | None:
        product = self.get_by_id(product_id)
        if product is not None:
            self._load_categories(product)
        return product

    def get_with_images(self, product_id: int) -> Product | None:
        product = self.get_by_id(product_id)
        if product is not None:
            self._load_images(product)
        return product

    def slug_exists(self, slug: str, exclude_product_id: int | None = None) -> bool:
        criteria = [equals_ci(ProductTable.slug, slug)]
        if exclude_product_id is not None:
            criteria.append(ProductTable.id != exclude_product_id)
        return self.any_include_deleted(*criteria)

    def sku_exists(self, sku: str, exclude_product_id: int | None = None) -> bool:
        criteria = [equals_ci(ProductTable.sku, sku)]
        if exclude_product_id is not None:
            criteria.append(ProductTable.id != exclude_product_id)
        return self.any_include_deleted(*criteria)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def get_by_category(self, category_id: int, page: int, page_size: int) -> PagedResult[Product]:
        return self._paged(
            page, page_size, _in_categories([category_id]), order_by=[ProductTable.name, ProductTable.id]
        )

    def get_by_status(self, status: ProductStatus, page: int, page_size: int) -> PagedResult[Product]:
        return self._paged(
            page, page_size, ProductTable.status == status, order_by=[ProductTable.name, ProductTable.id]
        )

    def get_featured_products(self, count: int = 10) -> list[Product]:
        """A random selection of active products."""
        statement = (
            self._select(ProductTable.status == ProductStatus.ACTIVE)
            .order_by(func.random())
            .limit(count)
        )
        return self._list(statement)

    def get_recent_products(self, count: int = 10) -> list[Product]:
        statement = (
            self._select(ProductTable.status == ProductStatus.ACTIVE)
            .order_by(ProductTable.created_at.desc(), ProductTable.id.desc())
            .limit(count)
        )
        return self._list(statement)

    def get_related_products(self, product_id: int, count: int = 4) -> list[Product]:
        """Active products sharing at least one category with ``product_id``."""
        category_ids = self._session.exec(
            select(ProductCategoryTable.category_id).where(
                ProductCategoryTable.product_id == product_id,
                ProductCategoryTable.is_deleted == False,  # noqa: E712
            )
        ).all()
        if not category_ids:
            return []
        statement = (
            self._select(
                ProductTable.id != product_id,
                ProductTable.status == ProductStatus.ACTIVE,
                _in_categories(category_ids),
            )
            .order_by(func.random())
            .limit(count)
        )
        return self._list(statement)

    def get_products_by_price_range(self, min_price: Decimal, max_price: Decimal) -> list[Product]:
        return self.find(
            ProductTable.price >= min_price,
            ProductTable.price <= max_price,
            order_by=[ProductTable.price, ProductTable.name],
        )

    def get_price_range(self) -> tuple[Decimal | None, Decimal | None]:
        """Lowest and highest price among active products."""
        statement = select(func.min(ProductTable.price), func.max(ProductTable.price)).where(
            *self._conditions([ProductTable.status == ProductStatus.ACTIVE], include_deleted=False)
        )
        low, high = self._session.exec(statement).one()
        return (
            Decimal(str(low)) if low is not None else None,
            Decimal(str(high)) if high is not None else None,
        )

    def get_vendors(self) -> list[str]:
        statement = (
            select(ProductTable.vendor)
            .where(
                *self._conditions(
                    [ProductTable.vendor != None, ProductTable.vendor != ""],  # noqa: E711
                    include_deleted=False,
                )
            )
            .distinct()
            .order_by(ProductTable.vendor)
        )
        return list(self._session.exec(statement).all())

    def get_tags(self) -> list[str]:
        statement = select(ProductTable.tags).where(
            *self._conditions([ProductTable.tags != None], include_deleted=False)  # noqa: E711
        )
        tags: set[str] = set()
        for value in self._session.exec(statement).all():
            tags.update(split_tags(value))
        return sorted(tags)

    def search_products(self, filters: ProductSearch) -> PagedResult[Product]:
        criteria: list[Any] = []
        if filters.term:
            criteria.append(
                or_(
                    contains_ci(ProductTable.name, filters.term),
                    contains_ci(ProductTable.description, filters.term),
                    contains_ci(ProductTable.sku, filters.term),
                    contains_ci(ProductTable.search_keywords, filters.term),
                )
            )
        if filters.status:
            criteria.append(ProductTable.status == _parse_enum(ProductStatus, filters.status))
        if filters.product_type:
            criteria.append(ProductTable.product_type == _parse_enum(ProductType, filters.product_type))
        if filters.category_ids:
            criteria.append(_in_categories(filters.category_ids))
        if filters.min_price is not None:
            criteria.append(ProductTable.price >= filters.min_price)
        if filters.max_price is not None:
            criteria.append(ProductTable.price <= filters.max_price)
        if filters.has_variants is not None:
            criteria.append(ProductTable.has_variants == filters.has_variants)
        if filters.vendor:
            criteria.append(equals_ci(ProductTable.vendor, filters.vendor))
        for tag in filters.tags:
            criteria.append(contains_ci(ProductTable.tags, tag))
        if filters.is_available is not None:
            criteria.append(_available() if filters.is_available else not_(_available()))

        column = _SORT_COLUMNS[filters.sort_by]
        order = column.desc() if filters.sort_direction is SortDirection.DESC else column.asc()
        return self._paged(filters.page, filters.page_size, *criteria, order_by=[order, ProductTable.id])

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def get_low_stock_products(self, threshold: int = 5) -> list[Product]:
        return self.find(
            ProductTable.track_quantity == True,  # noqa: E712
            ProductTable.has_variants == False,  # noqa: E712
            ProductTable.quantity > 0,
            ProductTable.quantity <= threshold,
            order_by=[ProductTable.quantity, ProductTable.name],
        )

    def get_out_of_stock_products(self) -> list[Product]:
        return self.find(
            ProductTable.track_quantity == True,  # noqa: E712
            ProductTable.has_variants == False,  # noqa: E712
            ProductTable.quantity <= 0,
            order_by=ProductTable.name,
        )

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def bulk_update_status(self, product_ids: Iterable[int], status: ProductStatus) -> int:
        """Set the status of every live product in ``product_ids``; returns rows changed."""
        ids = list(product_ids)
        if not ids:
            return 0
        now = utc_now()
        values: dict[str, Any] = {"status": status, "updated_at": now}
        if status is ProductStatus.ACTIVE:
            values["published_at"] = func.coalesce(ProductTable.published_at, now)
        statement = (
            update(ProductTable)
            .where(ProductTable.id.in_(ids), ProductTable.is_deleted == False)  # noqa: E712
            .values(**values)
        )
        with self._failure_logged("bulk update status of"):
            result = self._session.exec(statement)  # type: ignore[call-overload]
            self.save_changes()
        logger.info("Set status {} on {} products", status.value, result.rowcount)
        return result.rowcount or 0

    def bulk_delete(self, product_ids: Iterable[int], deleted_by_user_id: int | None = None) -> int:
        """Soft delete every live product in ``product_ids``; returns rows changed."""
        ids = list(product_ids)
        if not ids:
            return 0
        with self._failure_logged("bulk delete"):
            return self._bulk_set_deleted((ProductTable.id.in_(ids),), True, deleted_by_user_id)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def set_categories(self, product_id: int, category_ids: list[int]) -> bool:
        """Replace the product's categories, keeping the given order."""
        unique_ids = list(dict.fromkeys(category_ids))

        def operation() -> bool:
            if self._get_row(product_id) is None:
                logger.warning("Product {} not found for category assignment", product_id)
                return False
            if unique_ids:
                found = set(
                    self._session.exec(
                        select(CategoryTable.id).where(
                            CategoryTable.id.in_(unique_ids),
                            CategoryTable.is_deleted == False,  # noqa: E712
                        )
                    ).all()
                )
                missing = [category_id for category_id in unique_ids if category_id not in found]
                if missing:
                    raise EntityValidationError(f"Categories not found: {missing}")

            self._session.exec(  # type: ignore[call-overload]
                delete(ProductCategoryTable).where(ProductCategoryTable.product_id == product_id)
            )
            self._links.add_range(
                ProductCategory(product_id=product_id, category_id=category_id, sort_order=index)
                for index, category_id in enumerate(unique_ids)
            )
            return True

        return self.execute_in_transaction(operation)
