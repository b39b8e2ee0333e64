"""Product database table models."""

from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from src.cms.entities.core._base import EntityTable

from .entity import ProductStatus, ProductType


class ProductTable(EntityTable, table=True):
    __tablename__ = "products"

    name: str = Field(max_length=255, index=True)
    slug: str = Field(max_length=255, unique=True, index=True)
    description: str | None = Field(default=None, sa_type=sa.Text)
    short_description: str | None = Field(default=None, max_length=500)
    sku: str = Field(max_length=100, unique=True, index=True)
    vendor: str | None = Field(default=None, max_length=200, index=True)
    barcode: str | None = Field(default=None, max_length=100)
    template: str | None = Field(default=None, max_length=100)
    tags: str | None = Field(default=None, max_length=1000)
    search_keywords: str | None = Field(default=None, max_length=1000)
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)

    price: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=2, index=True)
    compare_at_price: Decimal | None = Field(default=None, max_digits=18, decimal_places=2)
    cost_per_item: Decimal | None = Field(default=None, max_digits=18, decimal_places=2)

    track_quantity: bool = Field(default=True)
    quantity: int = Field(default=0)
    continue_selling_when_out_of_stock: bool = Field(default=False)
    requires_shipping: bool = Field(default=True)
    is_physical_product: bool = Field(default=True)
    weight: Decimal | None = Field(default=None, max_digits=10, decimal_places=3)
    weight_unit: str = Field(default="kg", max_length=10)
    is_taxable: bool = Field(default=True)

    status: ProductStatus = Field(default=ProductStatus.DRAFT, index=True)
    product_type: ProductType = Field(default=ProductType.PHYSICAL)
    has_variants: bool = Field(default=False)
    published_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))


class ProductCategoryTable(EntityTable, table=True):
    __tablename__ = "product_categories"

    product_id: int = Field(foreign_key="products.id", index=True)
    category_id: int = Field(foreign_key="categories.id", index=True)
    sort_order: int = Field(default=0)


class ProductImageTable(EntityTable, table=True):
    __tablename__ = "product_images"

    product_id: int = Field(foreign_key="products.id", index=True)
    product_variant_id: int | None = Field(
        default=None, foreign_key="product_variants.id", index=True
    )
    url: str = Field(max_length=500)
    alt: str | None = Field(default=None, max_length=255)
    position: int = Field(default=0)
    width: int | None = Field(default=None)
    height: int | None = Field(default=None)
