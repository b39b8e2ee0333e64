"""Entity package: Product, with its images and category links."""

from .entity import Product, ProductCategory, ProductImage, ProductStatus, ProductType
from .repository import ProductRepository
from .table import ProductCategoryTable, ProductImageTable, ProductTable

__all__ = [
    "Product",
    "ProductCategory",
    "ProductCategoryTable",
    "ProductImage",
    "ProductImageTable",
    "ProductRepository",
    "ProductStatus",
    "ProductTable",
    "ProductType",
]
