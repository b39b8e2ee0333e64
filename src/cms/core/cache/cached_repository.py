"""Read-through cache decorators for entity repositories.

A cached repository wraps a plain repository. Hot reads go through the cache;
every other attribute is delegated to the wrapped repository. Delegated calls
that can write evict the entity's tag afterwards and report the tag to
``on_write`` so a unit of work can evict it again on rollback.
"""

import inspect
import json
from collections.abc import Callable
from datetime import timedelta
from typing import Any, Generic, TypeVar

from src.cms.core.cache.cache_keys import CacheKeys
from src.cms.core.cache.cache_service import CacheService
from src.cms.core.models.pagination import PagedResult
from src.cms.entities.content.category.entity import Category
from src.cms.entities.content.file.entity import FILE_ENTITY_TYPES, BaseFile, FileType
from src.cms.entities.content.page.entity import Page
from src.cms.entities.core.company.entity import Company
from src.cms.entities.core.location.entity import Location
from src.cms.entities.core.repository import SoftDeleteRepository
from src.cms.entities.core.user.entity import User
from src.cms.entities.service.product.entity import Product

TRepository = TypeVar("TRepository", bound=SoftDeleteRepository)

_READ_PREFIXES = (
    "get_",
    "find",
    "first_or_default",
    "any",
    "exists",
    "count",
    "search_",
    "is_",
    "has_",
    "can_",
    "generate_",
)


def is_read_method(name: str) -> bool:
    return name.startswith(_READ_PREFIXES) or name.endswith("_exists")


class CachedRepository(Generic[TRepository]):
    """Cache decorator shared by every entity repository."""

    cache_prefix: str = "entity"

    def __init__(
        self,
        repository: TRepository,
        cache: CacheService,
        on_write: Callable[[str], None] | None = None,
        expiration: timedelta | None = None,
    ):
        self._inner = repository
        self._cache = cache
        self._on_write = on_write
        self._expiration = expiration

    @property
    def inner(self) -> TRepository:
        return self._inner

    @property
    def tag(self) -> str:
        return CacheKeys.entity_tag(self.cache_prefix)

    def _tags(self, *extra: str) -> tuple[str, ...]:
        return (self.tag, *extra)

    def _read_through(self, key: str, loader: Callable[[], Any], value_type: Any, *tags: str) -> Any:
        return self._cache.get_or_set(
            key, loader, value_type, expiration=self._expiration, tags=self._tags(*tags)
        )

    def invalidate(self) -> None:
        self._cache.remove_by_tag(self.tag)
        if self._on_write is not None:
            self._on_write(self.tag)

    def _writing(self, method: Callable[..., Any]) -> Callable[..., Any]:
        def call(*args: Any, **kwargs: Any) -> Any:
            try:
                return method(*args, **kwargs)
            finally:
                self.invalidate()

        return call

    def __getattr__(self, name: str) -> Any:
        attribute = getattr(self._inner, name)
        if inspect.ismethod(attribute) and not name.startswith("_") and not is_read_method(name):
            return self._writing(attribute)
        return attribute

    # Reads shared by every entity

    def get_by_id(self, entity_id: int):
        return self._read_through(
            CacheKeys.by_id(self.cache_prefix, entity_id),
            lambda: self._inner.get_by_id(entity_id),
            self._inner.entity_model,
        )

    def get_all(self):
        return self._read_through(
            CacheKeys.all(self.cache_prefix),
            self._inner.get_all,
            list[self._inner.entity_model],  # type: ignore[name-defined]
        )

    def get_paged(self, page: int, page_size: int):
        return self._read_through(
            CacheKeys.paged(self.cache_prefix, page, page_size),
            lambda: self._inner.get_paged(page, page_size),
            list[self._inner.entity_model],  # type: ignore[name-defined]
        )


class CachedUserRepository(CachedRepository):
    cache_prefix = CacheKeys.USER

    def get_by_email(self, email: str) -> User | None:
        return self._read_through(
            CacheKeys.user_by_email(email), lambda: self._inner.get_by_email(email), User
        )


class CachedPageRepository(CachedRepository):
    cache_prefix = CacheKeys.PAGE

    def get_by_slug(self, slug: str) -> Page | None:
        return self._read_through(
            CacheKeys.page_by_slug(slug), lambda: self._inner.get_by_slug(slug), Page
        )

    def get_published_pages(self) -> list[Page]:
        return self._read_through(
            CacheKeys.published_pages(), self._inner.get_published_pages, list[Page]
        )

    def get_page_hierarchy(self) -> list[Page]:
        return self._read_through(
            CacheKeys.page_hierarchy(), self._inner.get_page_hierarchy, list[Page]
        )


class CachedPageVersionRepository(CachedRepository):
    cache_prefix = CacheKeys.PAGE_VERSION


class CachedCategoryRepository(CachedRepository):
    cache_prefix = CacheKeys.CATEGORY

    def get_by_slug(self, slug: str) -> Category | None:
        return self._read_through(
            CacheKeys.category_by_slug(slug), lambda: self._inner.get_by_slug(slug), Category
        )

    def get_category_tree(self) -> list[Category]:
        return self._read_through(
            CacheKeys.category_tree(), self._inner.get_category_tree, list[Category]
        )

    def get_root_categories(self) -> list[Category]:
        return self._read_through(
            CacheKeys.root_categories(), self._inner.get_root_categories, list[Category]
        )

    def get_sub_categories(self, parent_category_id: int) -> list[Category]:
        return self._read_through(
            CacheKeys.sub_categories(parent_category_id),
            lambda: self._inner.get_sub_categories(parent_category_id),
            list[Category],
        )


class CachedProductRepository(CachedRepository):
    cache_prefix = CacheKeys.PRODUCT

    def get_by_slug(self, slug: str) -> Product | None:
        return self._read_through(
            CacheKeys.product_by_slug(slug), lambda: self._inner.get_by_slug(slug), Product
        )

    def get_paged(self, page: int, page_size: int) -> list[Product]:
        return self._read_through(
            CacheKeys.products_page(page, page_size),
            lambda: self._inner.get_paged(page, page_size),
            list[Product],
        )

    def get_paged_result(self, page: int, page_size: int, *criteria: Any, order_by: Any = None):
        if criteria or order_by is not None:
            return self._inner.get_paged_result(page, page_size, *criteria, order_by=order_by)
        return self._read_through(
            f"{CacheKeys.products_page(page, page_size)}:result",
            lambda: self._inner.get_paged_result(page, page_size),
            PagedResult[Product],
        )


class CachedLocationRepository(CachedRepository):
    cache_prefix = CacheKeys.LOCATION

    def get_main_location(self, company_id: int | None = None) -> Location | None:
        if company_id is not None:
            return self._inner.get_main_location(company_id)
        return self._read_through(
            CacheKeys.main_location(), self._inner.get_main_location, Location
        )


class CachedCompanyRepository(CachedRepository):
    cache_prefix = CacheKeys.COMPANY

    def get_company_with_details(self, company_id: int | None = None) -> Company | None:
        if company_id is not None:
            return self._inner.get_company_with_details(company_id)
        # The aggregate embeds locations, addresses and contact details.
        return self._read_through(
            CacheKeys.main_company(),
            self._inner.get_company_with_details,
            Company,
            CacheKeys.entity_tag(CacheKeys.LOCATION),
            CacheKeys.entity_tag(CacheKeys.ADDRESS),
            CacheKeys.entity_tag(CacheKeys.CONTACT_DETAILS),
        )


class CachedFolderRepository(CachedRepository):
    cache_prefix = CacheKeys.FOLDER


class CachedFileRepository(CachedRepository):
    """Files are cached as raw JSON so each row comes back as its own variant class."""

    cache_prefix = CacheKeys.FILE

    def get_by_id(self, entity_id: int) -> BaseFile | None:
        def load() -> str | None:
            file = self._inner.get_by_id(entity_id)
            return file.model_dump_json() if file is not None else None

        payload = self._read_through(CacheKeys.file_by_id(entity_id), load, str)
        if payload is None:
            return None
        file_type = FileType(json.loads(payload)["file_type"])
        return FILE_ENTITY_TYPES[file_type].model_validate_json(payload)

    def get_all(self) -> list[BaseFile]:
        return self._inner.get_all()

    def get_paged(self, page: int, page_size: int) -> list[BaseFile]:
        return self._inner.get_paged(page, page_size)


class CachedAddressRepository(CachedRepository):
    cache_prefix = CacheKeys.ADDRESS


class CachedContactDetailsRepository(CachedRepository):
    cache_prefix = CacheKeys.CONTACT_DETAILS


class CachedProductVariantRepository(CachedRepository):
    cache_prefix = CacheKeys.PRODUCT_VARIANT

    def invalidate(self) -> None:
        # Product aggregates embed their variants.
        super().invalidate()
        product_tag = CacheKeys.entity_tag(CacheKeys.PRODUCT)
        self._cache.remove_by_tag(product_tag)
        if self._on_write is not None:
            self._on_write(product_tag)
