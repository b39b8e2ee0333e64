"""Entity package: ProductVariant."""

from .entity import ProductVariant
from .repository import ProductVariantRepository
from .table import ProductVariantTable

__all__ = ["ProductVariant", "ProductVariantRepository", "ProductVariantTable"]
