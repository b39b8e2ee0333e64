"""Product domain entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field

from src.cms.entities.content.category.entity import Category
from src.cms.entities.core._base import Entity
from src.cms.entities.service.product_variant.entity import ProductVariant


class ProductStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class ProductType(str, Enum):
    PHYSICAL = "Physical"
    DIGITAL = "Digital"
    SERVICE = "Service"
    GIFT_CARD = "GiftCard"


def split_tags(tags: str | None) -> list[str]:
    """Split a comma separated tag string, dropping blanks."""
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


class ProductImage(Entity):
    product_id: int
    product_variant_id: int | None = None
    url: str = Field(description="Image URL")
    alt: str | None = None
    position: int = Field(default=0, ge=0)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)


class ProductCategory(Entity):
    """Link between a product and one of its categories."""

    product_id: int
    category_id: int
    sort_order: int = 0


class Product(Entity):
    """A catalogue item.

    ``variants``, ``images`` and ``categories`` are only filled in by the
    repository's ``get_with_*`` loaders.
    """

    name: str = Field(description="Display name")
    slug: str = Field(description="URL segment, unique")
    description: str | None = None
    short_description: str | None = None
    sku: str = Field(description="Stock keeping unit, unique")
    vendor: str | None = None
    barcode: str | None = None
    template: str | None = None
    tags: str | None = Field(default=None, description="Comma separated tags")
    search_keywords: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None

    price: Decimal = Field(default=Decimal("0"), ge=0)
    compare_at_price: Decimal | None = Field(default=None, ge=0)
    cost_per_item: Decimal | None = Field(default=None, ge=0)

    track_quantity: bool = True
    quantity: int = 0
    continue_selling_when_out_of_stock: bool = False
    requires_shipping: bool = True
    is_physical_product: bool = True
    weight: Decimal | None = Field(default=None, ge=0)
    weight_unit: str = "kg"
    is_taxable: bool = True

    status: ProductStatus = ProductStatus.DRAFT
    product_type: ProductType = ProductType.PHYSICAL
    has_variants: bool = False
    published_at: datetime | None = None

    variants: list[ProductVariant] = Field(default_factory=list)
    images: list[ProductImage] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)

    @property
    def tag_list(self) -> list[str]:
        return split_tags(self.tags)

    @property
    def is_available(self) -> bool:
        if self.status is not ProductStatus.ACTIVE:
            return False
        return (
            self.has_variants
            or not self.track_quantity
            or self.quantity > 0
            or self.continue_selling_when_out_of_stock
        )

    @property
    def is_on_sale(self) -> bool:
        return self.compare_at_price is not None and self.compare_at_price > self.price
