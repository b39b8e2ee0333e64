from collections.abc import Mapping
from decimal import Decimal

from loguru import logger
from sqlalchemy import func
from sqlmodel import or_, select

from src.cms.core.exceptions import EntityValidationError
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci

from .entity import OPTION_NAMES, ProductVariant
from .table import ProductVariantTable


class ProductVariantRepository(SoftDeleteRepository[ProductVariant, ProductVariantTable]):
    """Data-access layer for product variants."""

    entity_model = ProductVariant
    table_model = ProductVariantTable

    _display_order = [ProductVariantTable.position, ProductVariantTable.title]

    def get_by_product_id(
        self, product_id: int, skip: int = 0, take: int | None = None
    ) -> list[ProductVariant]:
        statement = self._select(ProductVariantTable.product_id == product_id).order_by(
            *self._display_order
        )
        if skip:
            statement = statement.offset(skip)
        if take is not None:
            statement = statement.limit(take)
        return self._list(statement)

    def get_count_by_product_id(self, product_id: int) -> int:
        return self.count(ProductVariantTable.product_id == product_id)

    def get_default_variant(self, product_id: int) -> ProductVariant | None:
        """The flagged default, or the first variant by position when none is flagged."""
        flagged = self.first_or_default(
            ProductVariantTable.product_id == product_id,
            ProductVariantTable.is_default == True,  # noqa: E712
        )
        if flagged is not None:
            return flagged
        return self.first_or_default(
            ProductVariantTable.product_id == product_id, order_by=self._display_order
        )

    def has_default_variant(self, product_id: int) -> bool:
        return self.any(
            ProductVariantTable.product_id == product_id,
            ProductVariantTable.is_default == True,  # noqa: E712
        )

    def set_default_variant(self, variant_id: int) -> bool:
        """Flag one variant as default and clear the flag on its siblings."""

        def operation() -> bool:
            row = self._get_row(variant_id)
            if row is None:
                logger.warning("ProductVariant {} not found for setting default", variant_id)
                return False

            siblings = self._session.exec(
                self._select(
                    ProductVariantTable.product_id == row.product_id,
                    ProductVariantTable.is_default == True,  # noqa: E712
                    ProductVariantTable.id != variant_id,
                )
            ).all()
            for sibling in siblings:
                sibling.is_default = False
                self._stamp_updated(sibling)
                self._session.add(sibling)

            row.is_default = True
            self._stamp_updated(row)
            self._session.add(row)
            self._session.flush()
            return True

        return self.execute_in_transaction(operation)

    def get_next_position(self, product_id: int) -> int:
        statement = select(func.max(ProductVariantTable.position)).where(
            ProductVariantTable.product_id == product_id,
            ProductVariantTable.is_deleted == False,  # noqa: E712
        )
        current = self._session.exec(statement).one()
        return 0 if current is None else current + 1

    def reorder_variants(self, product_id: int, variant_ids: list[int]) -> bool:
        """Assign positions 0..n-1 following ``variant_ids``; unknown ids are skipped."""
        rows = {
            row.id: row
            for row in self._session.exec(
                self._select(
                    ProductVariantTable.product_id == product_id,
                    ProductVariantTable.id.in_(variant_ids),
                )
            ).all()
        }
        for position, variant_id in enumerate(variant_ids):
            row = rows.get(variant_id)
            if row is None:
                continue
            row.position = position
            self._stamp_updated(row)
            self._session.add(row)
        self.save_changes()
        return True

    def get_low_stock_variants(self, threshold: int = 5) -> list[ProductVariant]:
        return self.find(
            ProductVariantTable.track_quantity == True,  # noqa: E712
            ProductVariantTable.quantity > 0,
            ProductVariantTable.quantity <= threshold,
            order_by=[ProductVariantTable.quantity, ProductVariantTable.title],
        )

    def get_out_of_stock_variants(self) -> list[ProductVariant]:
        return self.find(
            ProductVariantTable.track_quantity == True,  # noqa: E712
            ProductVariantTable.quantity <= 0,
            order_by=ProductVariantTable.title,
        )

    def get_total_stock(self, product_id: int) -> int:
        statement = select(func.coalesce(func.sum(ProductVariantTable.quantity), 0)).where(
            ProductVariantTable.product_id == product_id,
            ProductVariantTable.track_quantity == True,  # noqa: E712
            ProductVariantTable.is_deleted == False,  # noqa: E712
        )
        return int(self._session.exec(statement).one())

    def update_stock(self, variant_id: int, quantity: int) -> bool:
        row = self._get_row(variant_id)
        if row is None:
            logger.warning("ProductVariant {} not found for stock update", variant_id)
            return False
        row.quantity = quantity
        self._stamp_updated(row)
        self._session.add(row)
        self.save_changes()
        return True

    def bulk_update_stock(self, stock_by_variant_id: Mapping[int, int]) -> int:
        """Set quantities for several variants at once; returns how many were found."""
        if not stock_by_variant_id:
            return 0
        rows = self._session.exec(
            self._select(ProductVariantTable.id.in_(list(stock_by_variant_id)))
        ).all()
        for row in rows:
            row.quantity = stock_by_variant_id[row.id]
            self._stamp_updated(row)
            self._session.add(row)
        self.save_changes()
        return len(rows)

    def sku_exists(self, sku: str, exclude_variant_id: int | None = None) -> bool:
        criteria = [equals_ci(ProductVariantTable.sku, sku)]
        if exclude_variant_id is not None:
            criteria.append(ProductVariantTable.id != exclude_variant_id)
        return self.any(*criteria)

    def get_variants_by_price_range(
        self, min_price: Decimal, max_price: Decimal
    ) -> list[ProductVariant]:
        return self.find(
            ProductVariantTable.price >= min_price,
            ProductVariantTable.price <= max_price,
            order_by=[ProductVariantTable.price, ProductVariantTable.title],
        )

    def get_variants_by_option(self, option_name: str, option_value: str) -> list[ProductVariant]:
        """Variants whose ``option1``, ``option2`` or ``option3`` equals ``option_value``."""
        name = option_name.strip().lower()
        if name not in OPTION_NAMES:
            raise EntityValidationError(f"Unknown option name: {option_name}")
        column = getattr(ProductVariantTable, name)
        return self.find(column == option_value, order_by=ProductVariantTable.title)

    def search_variants(self, term: str) -> list[ProductVariant]:
        if not term or not term.strip():
            return []
        term = term.strip()
        return self.find(
            or_(
                contains_ci(ProductVariantTable.title, term),
                contains_ci(ProductVariantTable.sku, term),
                contains_ci(ProductVariantTable.barcode, term),
                contains_ci(ProductVariantTable.option1, term),
                contains_ci(ProductVariantTable.option2, term),
                contains_ci(ProductVariantTable.option3, term),
            ),
            order_by=ProductVariantTable.title,
        )
