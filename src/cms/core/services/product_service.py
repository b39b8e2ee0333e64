"""Product use cases: catalogue CRUD, categorisation and bulk operations."""

from decimal import Decimal

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.models.search import ProductSearch
from src.cms.core.services.base import (
    EntityService,
    apply_changes,
    require_id,
    require_text,
    slugify,
)
from src.cms.core.services.product_variant_service import ProductVariantService, VariantFields
from src.cms.entities.core._base import utc_now
from src.cms.entities.service.product import Product, ProductStatus, ProductType


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255, description="Derived from name when omitted")
    sku: str = Field(min_length=1, max_length=100)
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=500)
    vendor: str | None = Field(default=None, max_length=200)
    barcode: str | None = Field(default=None, max_length=100)
    template: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list)
    search_keywords: str | None = Field(default=None, max_length=1000)
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    compare_at_price: Decimal | None = Field(default=None, ge=0)
    cost_per_item: Decimal | None = Field(default=None, ge=0)
    track_quantity: bool = True
    quantity: int = 0
    continue_selling_when_out_of_stock: bool = False
    requires_shipping: bool = True
    is_physical_product: bool = True
    weight: Decimal | None = Field(default=None, ge=0)
    weight_unit: str = Field(default="kg", max_length=10)
    is_taxable: bool = True
    status: ProductStatus = ProductStatus.DRAFT
    product_type: ProductType = ProductType.PHYSICAL
    category_ids: list[int] = Field(default_factory=list)
    variants: list[VariantFields] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255)
    sku: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=500)
    vendor: str | None = Field(default=None, max_length=200)
    barcode: str | None = Field(default=None, max_length=100)
    template: str | None = Field(default=None, max_length=100)
    tags: list[str] | None = None
    search_keywords: str | None = Field(default=None, max_length=1000)
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    price: Decimal | None = Field(default=None, ge=0)
    compare_at_price: Decimal | None = Field(default=None, ge=0)
    cost_per_item: Decimal | None = Field(default=None, ge=0)
    track_quantity: bool | None = None
    quantity: int | None = None
    continue_selling_when_out_of_stock: bool | None = None
    requires_shipping: bool | None = None
    is_physical_product: bool | None = None
    weight: Decimal | None = Field(default=None, ge=0)
    weight_unit: str | None = Field(default=None, max_length=10)
    is_taxable: bool | None = None
    status: ProductStatus | None = None
    product_type: ProductType | None = None
    category_ids: list[int] | None = None


def _join_tags(tags: list[str] | None) -> str | None:
    cleaned = list(dict.fromkeys(tag.strip() for tag in tags or [] if tag.strip()))
    return ",".join(cleaned) or None


class ProductService(EntityService):
    entity_label = "Product"

    @property
    def _variants(self) -> ProductVariantService:
        return ProductVariantService(self._uow)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, product_id: int) -> Product:
        """A product with its variants, images and categories."""
        require_id(product_id, "Product")
        with self._logged("get", product_id=product_id):
            return self._found(self._uow.products.get_with_details(product_id), product_id)

    def get_product_by_slug(self, slug: str) -> Product:
        slug = require_text(slug, "Slug")
        return self._found(self._uow.products.get_by_slug(slug), slug)

    def get_products(self, page: int, page_size: int) -> PagedResult[Product]:
        with self._logged("list"):
            return self._uow.products.get_paged_result(page, page_size)

    def get_products_by_category(
        self, category_id: int, page: int, page_size: int
    ) -> PagedResult[Product]:
        require_id(category_id, "Category")
        return self._uow.products.get_by_category(category_id, page, page_size)

    def search_products(self, filters: ProductSearch) -> PagedResult[Product]:
        with self._logged("search"):
            return self._uow.products.search_products(filters)

    def get_related_products(self, product_id: int, count: int = 4) -> list[Product]:
        require_id(product_id, "Product")
        return self._uow.products.get_related_products(product_id, count)

    def get_featured_products(self, count: int = 10) -> list[Product]:
        return self._uow.products.get_featured_products(count)

    def get_low_stock_products(self, threshold: int = 5) -> list[Product]:
        return self._uow.products.get_low_stock_products(threshold)

    def get_price_range(self) -> tuple[Decimal | None, Decimal | None]:
        return self._uow.products.get_price_range()

    def get_vendors(self) -> list[str]:
        return self._uow.products.get_vendors()

    def get_tags(self) -> list[str]:
        return self._uow.products.get_tags()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _check_unique(self, slug: str | None, sku: str | None, exclude_product_id: int | None = None) -> None:
        if slug and self._uow.products.slug_exists(slug, exclude_product_id):
            raise EntityValidationError(f"A product with slug '{slug}' already exists")
        if sku and (
            self._uow.products.sku_exists(sku, exclude_product_id)
            or self._uow.product_variants.sku_exists(sku)
        ):
            raise EntityValidationError(f"SKU '{sku}' is already in use")

    def create_product(self, data: ProductCreate) -> Product:
        """Create a product with its categories and variants in one transaction."""
        name = require_text(data.name, "Product name")
        sku = require_text(data.sku, "SKU")
        slug = slugify(data.slug or name)
        self._check_unique(slug, sku)

        fields = data.model_dump(exclude={"category_ids", "variants", "tags"})
        product = Product(
            **{
                **fields,
                "name": name,
                "slug": slug,
                "sku": sku,
                "tags": _join_tags(data.tags),
                "has_variants": bool(data.variants),
                "published_at": utc_now() if data.status is ProductStatus.ACTIVE else None,
            }
        )

        def operation() -> Product:
            created = self._uow.products.add(product)
            if data.category_ids:
                self._uow.products.set_categories(created.id, data.category_ids)
            for variant in data.variants:
                self._variants.add_variant(created.id, variant)
            return created

        with self._logged("create", slug=slug):
            created = self._uow.execute_in_transaction(operation)
        logger.info("Product {} created with slug {}", created.id, slug)
        return self.get_product(created.id)

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        require_id(product_id, "Product")
        product = self._found(self._uow.products.get_by_id(product_id), product_id)
        if data.slug is not None:
            data.slug = slugify(data.slug)
        self._check_unique(data.slug, data.sku, product_id)

        changes = data.model_dump(exclude_unset=True, exclude={"category_ids", "tags"})
        if "tags" in data.model_fields_set:
            changes["tags"] = _join_tags(data.tags)
        if data.status is ProductStatus.ACTIVE and product.published_at is None:
            changes["published_at"] = utc_now()
        updated_product = apply_changes(product, changes)

        def operation() -> Product | None:
            updated = self._uow.products.update(updated_product)
            if data.category_ids is not None:
                self._uow.products.set_categories(product_id, data.category_ids)
            return updated

        with self._logged("update", product_id=product_id):
            self._found(self._uow.execute_in_transaction(operation), product_id)
        logger.info("Product {} updated", product_id)
        return self.get_product(product_id)

    def set_categories(self, product_id: int, category_ids: list[int]) -> Product:
        require_id(product_id, "Product")
        with self._logged("set categories of", product_id=product_id):
            assigned = self._uow.products.set_categories(product_id, category_ids)
        if not assigned:
            raise EntityNotFoundError(self.entity_label, product_id)
        return self.get_product(product_id)

    def publish_product(self, product_id: int) -> Product:
        return self.update_product(product_id, ProductUpdate(status=ProductStatus.ACTIVE))

    def archive_product(self, product_id: int) -> Product:
        return self.update_product(product_id, ProductUpdate(status=ProductStatus.ARCHIVED))

    def delete_product(self, product_id: int) -> bool:
        """Soft delete a product together with its variants."""
        require_id(product_id, "Product")
        if not self._uow.products.exists(product_id):
            logger.warning("Failed to delete product {} - not found", product_id)
            return False

        def operation() -> bool:
            variant_ids = [
                variant.id for variant in self._uow.product_variants.get_by_product_id(product_id)
            ]
            if variant_ids:
                self._uow.product_variants.soft_delete_range(variant_ids)
            return self._uow.products.soft_delete(product_id)

        with self._logged("delete", product_id=product_id):
            return self._uow.execute_in_transaction(operation)

    def restore_product(self, product_id: int) -> bool:
        require_id(product_id, "Product")
        with self._logged("restore", product_id=product_id):
            return self._uow.products.restore(product_id)

    def bulk_update_status(self, product_ids: list[int], status: ProductStatus | str) -> int:
        if isinstance(status, str) and not isinstance(status, ProductStatus):
            try:
                status = ProductStatus(status)
            except ValueError as e:
                raise EntityValidationError(f"Invalid product status: {status}") from e
        for product_id in product_ids:
            require_id(product_id, "Product")
        with self._logged("bulk update status of", count=len(product_ids)):
            return self._uow.products.bulk_update_status(product_ids, status)

    def bulk_delete(self, product_ids: list[int]) -> int:
        for product_id in product_ids:
            require_id(product_id, "Product")
        with self._logged("bulk delete", count=len(product_ids)):
            return self._uow.products.bulk_delete(product_ids)

