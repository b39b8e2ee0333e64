"""Unit of work: one session, its repositories and an optional explicit transaction.

Repositories are created lazily and share the unit's session. When a
``CacheService`` is supplied each entity repository is wrapped in its cached
decorator; tags evicted by writes are remembered so a rollback can evict
them again, since reads inside the transaction may have cached data that
never got committed.

Example:
    with UnitOfWork(session, cache) as uow:
        uow.begin_transaction()
        uow.addresses.add(address)
        uow.commit_transaction()
"""

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from loguru import logger
from sqlmodel import Session

from src.cms.core.cache.cache_service import CacheService
from src.cms.core.cache.cached_repository import (
    CachedAddressRepository,
    CachedCategoryRepository,
    CachedCompanyRepository,
    CachedContactDetailsRepository,
    CachedFileRepository,
    CachedFolderRepository,
    CachedLocationRepository,
    CachedPageRepository,
    CachedPageVersionRepository,
    CachedProductRepository,
    CachedProductVariantRepository,
    CachedRepository,
    CachedUserRepository,
)
from src.cms.core.exceptions import EntityValidationError, TransactionError
from src.cms.entities.content.category import CategoryRepository
from src.cms.entities.content.file import FileRepository
from src.cms.entities.content.folder import FolderRepository
from src.cms.entities.content.page import PageRepository
from src.cms.entities.content.page_version import PageVersionRepository
from src.cms.entities.core._base import Entity, EntityTable
from src.cms.entities.core.address import AddressRepository
from src.cms.entities.core.company import CompanyRepository
from src.cms.entities.core.contact_details import ContactDetailsRepository
from src.cms.entities.core.location import LocationRepository
from src.cms.entities.core.repository import EXPLICIT_TRANSACTION, SoftDeleteRepository
from src.cms.entities.core.user import UserRepository
from src.cms.entities.service.product import ProductRepository
from src.cms.entities.service.product.entity import ProductCategory, ProductImage
from src.cms.entities.service.product.table import ProductCategoryTable, ProductImageTable
from src.cms.entities.service.product_variant import ProductVariantRepository

TResult = TypeVar("TResult")

# name -> (repository, cached decorator)
_REPOSITORIES: dict[str, tuple[type[SoftDeleteRepository], type[CachedRepository]]] = {
    "users": (UserRepository, CachedUserRepository),
    "companies": (CompanyRepository, CachedCompanyRepository),
    "locations": (LocationRepository, CachedLocationRepository),
    "addresses": (AddressRepository, CachedAddressRepository),
    "contact_details": (ContactDetailsRepository, CachedContactDetailsRepository),
    "pages": (PageRepository, CachedPageRepository),
    "page_versions": (PageVersionRepository, CachedPageVersionRepository),
    "categories": (CategoryRepository, CachedCategoryRepository),
    "folders": (FolderRepository, CachedFolderRepository),
    "files": (FileRepository, CachedFileRepository),
    "products": (ProductRepository, CachedProductRepository),
    "product_variants": (ProductVariantRepository, CachedProductVariantRepository),
}

# Tables without a dedicated repository.
_AUXILIARY_ENTITIES: dict[type[EntityTable], type[Entity]] = {
    ProductCategoryTable: ProductCategory,
    ProductImageTable: ProductImage,
}


class UnitOfWork:
    def __init__(self, session: Session, cache: CacheService | None = None):
        self._session = session
        self._cache = cache
        self._repositories: dict[Any, Any] = {}
        self._touched_tags: set[str] = set()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def cache(self) -> CacheService | None:
        return self._cache

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def _repository(self, name: str) -> Any:
        if name not in self._repositories:
            repository_type, cached_type = _REPOSITORIES[name]
            repository: Any = repository_type(self._session)
            if self._cache is not None:
                repository = cached_type(repository, self._cache, on_write=self._touched_tags.add)
            self._repositories[name] = repository
        return self._repositories[name]

    @property
    def users(self) -> UserRepository:
        return self._repository("users")

    @property
    def companies(self) -> CompanyRepository:
        return self._repository("companies")

    @property
    def locations(self) -> LocationRepository:
        return self._repository("locations")

    @property
    def addresses(self) -> AddressRepository:
        return self._repository("addresses")

    @property
    def contact_details(self) -> ContactDetailsRepository:
        return self._repository("contact_details")

    @property
    def pages(self) -> PageRepository:
        return self._repository("pages")

    @property
    def page_versions(self) -> PageVersionRepository:
        return self._repository("page_versions")

    @property
    def categories(self) -> CategoryRepository:
        return self._repository("categories")

    @property
    def folders(self) -> FolderRepository:
        return self._repository("folders")

    @property
    def files(self) -> FileRepository:
        return self._repository("files")

    @property
    def products(self) -> ProductRepository:
        return self._repository("products")

    @property
    def product_variants(self) -> ProductVariantRepository:
        return self._repository("product_variants")

    def get_repository(
        self, table_model: type[EntityTable], entity_model: type[Entity] | None = None
    ) -> Any:
        """Return the repository for ``table_model``.

        Entity tables resolve to their named repository; auxiliary tables get a
        plain ``SoftDeleteRepository``. Unknown tables need ``entity_model``.
        """
        for name, (repository_type, _) in _REPOSITORIES.items():
            if repository_type.table_model is table_model:
                return self._repository(name)

        if table_model not in self._repositories:
            entity_model = entity_model or _AUXILIARY_ENTITIES.get(table_model)
            if entity_model is None:
                raise EntityValidationError(
                    f"No entity model registered for table {table_model.__name__}"
                )
            self._repositories[table_model] = SoftDeleteRepository(
                self._session, entity_model, table_model
            )
        return self._repositories[table_model]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def has_active_transaction(self) -> bool:
        return bool(self._session.info.get(EXPLICIT_TRANSACTION))

    def has_changes(self) -> bool:
        return bool(self._session.new or self._session.dirty or self._session.deleted)

    def begin_transaction(self) -> None:
        """Hold repository saves as flushes until commit or rollback."""
        if self.has_active_transaction:
            raise TransactionError("A transaction is already active")
        self._session.info[EXPLICIT_TRANSACTION] = True
        self._touched_tags.clear()
        logger.debug("Transaction started")

    def commit_transaction(self) -> None:
        if not self.has_active_transaction:
            raise TransactionError("No active transaction to commit")
        try:
            self._session.commit()
        except Exception as e:
            logger.error(
                "Failed to commit transaction",
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )
            self.rollback_transaction()
            raise
        self._session.info.pop(EXPLICIT_TRANSACTION, None)
        self._touched_tags.clear()
        logger.debug("Transaction committed")

    def rollback_transaction(self) -> None:
        if not self.has_active_transaction:
            logger.warning("Rollback requested without an active transaction")
        self._session.rollback()
        self._session.info.pop(EXPLICIT_TRANSACTION, None)
        self._evict_touched_tags()
        logger.debug("Transaction rolled back")

    def _evict_touched_tags(self) -> None:
        if self._cache is not None:
            for tag in self._touched_tags:
                self._cache.remove_by_tag(tag)
        self._touched_tags.clear()

    def execute_in_transaction(self, operation: Callable[[], TResult]) -> TResult:
        """Run ``operation`` atomically.

        Inside an already active transaction the operation simply joins it.
        """
        if self.has_active_transaction:
            return operation()

        self.begin_transaction()
        try:
            result = operation()
        except Exception as e:
            logger.error(
                "Transaction failed, rolling back",
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )
            self.rollback_transaction()
            raise
        self.commit_transaction()
        return result

    def save_changes(self) -> int:
        """Commit pending work, or flush it while a transaction is active."""
        pending = len(self._session.new) + len(self._session.dirty) + len(self._session.deleted)
        try:
            if self.has_active_transaction:
                self._session.flush()
            else:
                self._session.commit()
        except Exception as e:
            logger.error(
                "Failed to save changes",
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )
            if not self.has_active_transaction:
                self._session.rollback()
                self._evict_touched_tags()
            raise
        return pending

    def clear_change_tracker(self) -> None:
        """Detach every loaded row so later reads hit the database again."""
        self._session.expunge_all()

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def bulk_insert(self, table_model: type[EntityTable], entities: Iterable[Entity]) -> list[Any]:
        def operation() -> list[Any]:
            return self.get_repository(table_model).add_range(entities)

        created = self.execute_in_transaction(operation)
        logger.info("Bulk inserted {} {} rows", len(created), table_model.__name__)
        return created

    def bulk_update(self, table_model: type[EntityTable], entities: Iterable[Entity]) -> list[Any]:
        def operation() -> list[Any]:
            return self.get_repository(table_model).update_range(entities)

        updated = self.execute_in_transaction(operation)
        logger.info("Bulk updated {} {} rows", len(updated), table_model.__name__)
        return updated

    def bulk_delete(
        self,
        table_model: type[EntityTable],
        entity_ids: Iterable[int],
        deleted_by_user_id: int | None = None,
    ) -> int:
        """Soft delete every live record in ``entity_ids``; returns how many were deleted."""

        def operation() -> int:
            return self.get_repository(table_model).soft_delete_range(
                entity_ids, deleted_by_user_id=deleted_by_user_id
            )

        deleted = self.execute_in_transaction(operation)
        logger.info("Bulk soft deleted {} {} rows", deleted, table_model.__name__)
        return deleted

    # ------------------------------------------------------------------
    # Context management
    # ------------------------------------------------------------------

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            if self.has_active_transaction:
                self.rollback_transaction()
            else:
                self._session.rollback()
                self._evict_touched_tags()
        elif self.has_active_transaction:
            logger.warning("Unit of work closed with an uncommitted transaction, rolling back")
            self.rollback_transaction()
        self._repositories.clear()
