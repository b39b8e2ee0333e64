"""Application services exports."""

# Infrastructure
from .database import DbManageService, DbSessionService
from .redis_service import RedisService

# Entity services
from .address_service import AddressCreate, AddressService, AddressUpdate
from .category_service import CategoryCreate, CategoryOrder, CategoryService, CategoryUpdate
from .contact_details_service import (
    ContactDetailsCreate,
    ContactDetailsService,
    ContactDetailsUpdate,
)
from .file_service import FileService, FileUpdate, FileUpload
from .folder_service import FolderCreate, FolderNode, FolderService, FolderUpdate
from .location_service import (
    CompanyService,
    CompanyUpdate,
    LocationCreate,
    LocationService,
    LocationUpdate,
)
from .page_service import PageCreate, PageService, PageUpdate
from .product_service import ProductCreate, ProductService, ProductUpdate
from .product_variant_service import (
    ProductVariantCreate,
    ProductVariantService,
    ProductVariantUpdate,
    VariantFields,
)
from .user_service import UserCreate, UserService, UserUpdate

__all__ = [
    # Infrastructure
    "DbManageService",
    "DbSessionService",
    "RedisService",
    # Content
    "CategoryCreate",
    "CategoryOrder",
    "CategoryService",
    "CategoryUpdate",
    "FileService",
    "FileUpdate",
    "FileUpload",
    "FolderCreate",
    "FolderNode",
    "FolderService",
    "FolderUpdate",
    "PageCreate",
    "PageService",
    "PageUpdate",
    # Core
    "AddressCreate",
    "AddressService",
    "AddressUpdate",
    "CompanyService",
    "CompanyUpdate",
    "ContactDetailsCreate",
    "ContactDetailsService",
    "ContactDetailsUpdate",
    "LocationCreate",
    "LocationService",
    "LocationUpdate",
    "UserCreate",
    "UserService",
    "UserUpdate",
    # Catalogue
    "ProductCreate",
    "ProductService",
    "ProductUpdate",
    "ProductVariantCreate",
    "ProductVariantService",
    "ProductVariantUpdate",
    "VariantFields",
]
