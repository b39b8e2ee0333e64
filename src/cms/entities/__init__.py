"""CMS entities, organised by business concept.

Each entity has its own package containing:
- entity.py: pydantic domain model
- table.py: SQLModel persistence model
- repository.py: data access layer

Importing this package registers every table on ``SQLModel.metadata``.
"""

from .content.category import Category, CategoryRepository, CategoryTable
from .content.file import BaseFile, FileRepository, FileTable, FileType
from .content.folder import Folder, FolderRepository, FolderTable, FolderType
from .content.page import Page, PageRepository, PageStatus, PageTable
from .content.page_version import PageVersion, PageVersionRepository, PageVersionTable
from .core.address import Address, AddressRepository, AddressTable
from .core.company import Company, CompanyRepository, CompanyTable
from .core.contact_details import ContactDetails, ContactDetailsRepository, ContactDetailsTable
from .core.location import Location, LocationRepository, LocationTable
from .core.owner import OwnerType
from .core.user import User, UserRepository, UserRole, UserTable
from .service.product import (
    Product,
    ProductCategoryTable,
    ProductImageTable,
    ProductRepository,
    ProductStatus,
    ProductTable,
    ProductType,
)
from .service.product_variant import ProductVariant, ProductVariantRepository, ProductVariantTable

__all__ = [
    "Address",
    "AddressRepository",
    "AddressTable",
    "BaseFile",
    "Category",
    "CategoryRepository",
    "CategoryTable",
    "Company",
    "CompanyRepository",
    "CompanyTable",
    "ContactDetails",
    "ContactDetailsRepository",
    "ContactDetailsTable",
    "FileRepository",
    "FileTable",
    "FileType",
    "Folder",
    "FolderRepository",
    "FolderTable",
    "FolderType",
    "Location",
    "LocationRepository",
    "LocationTable",
    "OwnerType",
    "Page",
    "PageRepository",
    "PageStatus",
    "PageTable",
    "PageVersion",
    "PageVersionRepository",
    "PageVersionTable",
    "Product",
    "ProductCategoryTable",
    "ProductImageTable",
    "ProductRepository",
    "ProductStatus",
    "ProductTable",
    "ProductType",
    "ProductVariant",
    "ProductVariantRepository",
    "ProductVariantTable",
    "User",
    "UserRepository",
    "UserRole",
    "UserTable",
]
