"""ProductVariant domain entity."""

from decimal import Decimal

from pydantic import Field

from src.cms.entities.core._base import Entity

OPTION_NAMES = ("option1", "option2", "option3")


class ProductVariant(Entity):
    """A purchasable variation of a product, e.g. size M in red."""

    product_id: int = Field(description="Parent product")
    title: str = Field(description="Variant title")
    sku: str | None = Field(default=None)
    barcode: str | None = Field(default=None)
    image: str | None = Field(default=None, description="Image URL")
    position: int = Field(default=0, ge=0)
    is_default: bool = Field(default=False)

    price: Decimal = Field(default=Decimal("0"), ge=0)
    compare_at_price: Decimal | None = Field(default=None, ge=0)
    cost_per_item: Decimal | None = Field(default=None, ge=0)

    quantity: int = Field(default=0)
    track_quantity: bool = Field(default=True)
    continue_selling: bool = Field(default=False, description="Sell when out of stock")
    requires_shipping: bool = Field(default=True)
    is_taxable: bool = Field(default=True)
    weight: Decimal | None = Field(default=None, ge=0)
    weight_unit: str = Field(default="kg")

    option1: str | None = Field(default=None)
    option2: str | None = Field(default=None)
    option3: str | None = Field(default=None)

    @property
    def is_available(self) -> bool:
        return not self.track_quantity or self.quantity > 0 or self.continue_selling

    @property
    def options(self) -> list[str]:
        return [value for value in (self.option1, self.option2, self.option3) if value]
