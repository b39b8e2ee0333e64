"""ProductVariant database table model."""

from decimal import Decimal

from sqlmodel import Field

from src.cms.entities.core._base import EntityTable


class ProductVariantTable(EntityTable, table=True):
    __tablename__ = "product_variants"

    product_id: int = Field(foreign_key="products.id", index=True)
    title: str = Field(max_length=255)
    sku: str | None = Field(default=None, max_length=100, index=True)
    barcode: str | None = Field(default=None, max_length=100)
    image: str | None = Field(default=None, max_length=500)
    position: int = Field(default=0)
    is_default: bool = Field(default=False)

    price: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=2)
    compare_at_price: Decimal | None = Field(default=None, max_digits=18, decimal_places=2)
    cost_per_item: Decimal | None = Field(default=None, max_digits=18, decimal_places=2)

    quantity: int = Field(default=0)
    track_quantity: bool = Field(default=True)
    continue_selling: bool = Field(default=False)
    requires_shipping: bool = Field(default=True)
    is_taxable: bool = Field(default=True)
    weight: Decimal | None = Field(default=None, max_digits=10, decimal_places=3)
    weight_unit: str = Field(default="kg", max_length=10)

    option1: str | None = Field(default=None, max_length=100)
    option2: str | None = Field(default=None, max_length=100)
    option3: str | None = Field(default=None, max_length=100)
