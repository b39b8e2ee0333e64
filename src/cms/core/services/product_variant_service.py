"""Product variant use cases: CRUD, default handling and stock."""

from decimal import Decimal

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.services.base import EntityService, apply_changes, require_id, require_text
from src.cms.entities.service.product_variant import ProductVariant


class VariantFields(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    sku: str | None = Field(default=None, max_length=100)
    barcode: str | None = Field(default=None, max_length=100)
    image: str | None = Field(default=None, max_length=500)
    is_default: bool = False
    price: Decimal = Field(default=Decimal("0"), ge=0)
    compare_at_price: Decimal | None = Field(default=None, ge=0)
    cost_per_item: Decimal | None = Field(default=None, ge=0)
    quantity: int = 0
    track_quantity: bool = True
    continue_selling: bool = False
    requires_shipping: bool = True
    is_taxable: bool = True
    weight: Decimal | None = Field(default=None, ge=0)
    weight_unit: str = Field(default="kg", max_length=10)
    option1: str | None = Field(default=None, max_length=100)
    option2: str | None = Field(default=None, max_length=100)
    option3: str | None = Field(default=None, max_length=100)


class ProductVariantCreate(VariantFields):
    product_id: int = Field(gt=0)


class ProductVariantUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    sku: str | None = Field(default=None, max_length=100)
    barcode: str | None = Field(default=None, max_length=100)
    image: str | None = Field(default=None, max_length=500)
    price: Decimal | None = Field(default=None, ge=0)
    compare_at_price: Decimal | None = Field(default=None, ge=0)
    cost_per_item: Decimal | None = Field(default=None, ge=0)
    quantity: int | None = None
    track_quantity: bool | None = None
    continue_selling: bool | None = None
    requires_shipping: bool | None = None
    is_taxable: bool | None = None
    weight: Decimal | None = Field(default=None, ge=0)
    weight_unit: str | None = Field(default=None, max_length=10)
    option1: str | None = Field(default=None, max_length=100)
    option2: str | None = Field(default=None, max_length=100)
    option3: str | None = Field(default=None, max_length=100)


class ProductVariantService(EntityService):
    entity_label = "ProductVariant"

    def get_variant(self, variant_id: int) -> ProductVariant:
        require_id(variant_id, "Variant")
        with self._logged("get", variant_id=variant_id):
            return self._found(self._uow.product_variants.get_by_id(variant_id), variant_id)

    def get_variants_by_product(self, product_id: int) -> list[ProductVariant]:
        require_id(product_id, "Product")
        return self._uow.product_variants.get_by_product_id(product_id)

    def get_default_variant(self, product_id: int) -> ProductVariant | None:
        require_id(product_id, "Product")
        return self._uow.product_variants.get_default_variant(product_id)

    def _check_sku(self, sku: str | None, exclude_variant_id: int | None = None) -> None:
        if not sku:
            return
        taken = self._uow.product_variants.sku_exists(sku, exclude_variant_id)
        if taken or self._uow.products.sku_exists(sku):
            raise EntityValidationError(f"SKU '{sku}' is already in use")

    def add_variant(self, product_id: int, data: VariantFields) -> ProductVariant:
        """Append a variant to a product.

        The product's first variant, or one created with ``is_default``,
        becomes the only default variant.
        """
        require_id(product_id, "Product")
        require_text(data.title, "Variant title")
        if not self._uow.products.exists(product_id):
            raise EntityValidationError(f"Product {product_id} not found")
        self._check_sku(data.sku)

        def operation() -> ProductVariant:
            variants = self._uow.product_variants
            first = variants.get_count_by_product_id(product_id) == 0
            variant = ProductVariant(
                **{
                    **data.model_dump(),
                    "product_id": product_id,
                    "position": variants.get_next_position(product_id),
                    "is_default": False,
                }
            )
            created = variants.add(variant)
            if data.is_default or first:
                variants.set_default_variant(created.id)
                created.is_default = True
            if first:
                self._mark_has_variants(product_id, True)
            return created

        with self._logged("create", product_id=product_id):
            created = self._uow.execute_in_transaction(operation)
        logger.info("Variant {} added to product {}", created.id, product_id)
        return created

    def create_variant(self, data: ProductVariantCreate) -> ProductVariant:
        return self.add_variant(data.product_id, VariantFields(**data.model_dump(exclude={"product_id"})))

    def update_variant(self, variant_id: int, data: ProductVariantUpdate) -> ProductVariant:
        variant = self.get_variant(variant_id)
        if data.sku:
            self._check_sku(data.sku, variant_id)
        with self._logged("update", variant_id=variant_id):
            updated = self._uow.product_variants.update(apply_changes(variant, data))
            self._uow.save_changes()
        return self._found(updated, variant_id)

    def delete_variant(self, variant_id: int) -> bool:
        """Soft delete a variant; a deleted default hands the flag to the next variant."""
        require_id(variant_id, "Variant")
        variant = self._uow.product_variants.get_by_id(variant_id)
        if variant is None:
            logger.warning("Failed to delete variant {} - not found", variant_id)
            return False

        def operation() -> bool:
            variants = self._uow.product_variants
            deleted = variants.soft_delete(variant_id)
            remaining = variants.get_by_product_id(variant.product_id)
            if not remaining:
                self._mark_has_variants(variant.product_id, False)
            elif variant.is_default:
                variants.set_default_variant(remaining[0].id)
            return deleted

        with self._logged("delete", variant_id=variant_id):
            return self._uow.execute_in_transaction(operation)

    def set_default_variant(self, variant_id: int) -> bool:
        require_id(variant_id, "Variant")
        with self._logged("set default", variant_id=variant_id):
            return self._uow.product_variants.set_default_variant(variant_id)

    def reorder_variants(self, product_id: int, variant_ids: list[int]) -> list[ProductVariant]:
        require_id(product_id, "Product")
        with self._logged("reorder", product_id=product_id):
            self._uow.product_variants.reorder_variants(product_id, variant_ids)
        return self._uow.product_variants.get_by_product_id(product_id)

    def update_stock(self, variant_id: int, quantity: int) -> ProductVariant:
        require_id(variant_id, "Variant")
        if quantity < 0:
            raise EntityValidationError("Quantity cannot be negative")
        with self._logged("update stock of", variant_id=variant_id):
            updated = self._uow.product_variants.update_stock(variant_id, quantity)
        if not updated:
            raise EntityNotFoundError(self.entity_label, variant_id)
        return self.get_variant(variant_id)

    def bulk_update_stock(self, stock_by_variant_id: dict[int, int]) -> int:
        if any(quantity < 0 for quantity in stock_by_variant_id.values()):
            raise EntityValidationError("Quantity cannot be negative")
        with self._logged("bulk update stock of", count=len(stock_by_variant_id)):
            return self._uow.product_variants.bulk_update_stock(stock_by_variant_id)

    def get_low_stock_variants(self, threshold: int = 5) -> list[ProductVariant]:
        return self._uow.product_variants.get_low_stock_variants(threshold)

    def _mark_has_variants(self, product_id: int, has_variants: bool) -> None:
        product = self._uow.products.get_by_id(product_id)
        if product is not None and product.has_variants != has_variants:
            product.has_variants = has_variants
            self._uow.products.update(product)
