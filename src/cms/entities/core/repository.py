"""Generic soft-delete aware repository.

Every entity repository derives from ``SoftDeleteRepository`` and only adds
its own queries. Default reads hide soft-deleted rows; each read has an
``*_include_deleted`` twin for administrative screens and restore flows.

Criteria are plain SQLAlchemy column expressions against the table model,
for example ``repo.find(CategoryTable.is_active == True)``.
"""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from loguru import logger
from sqlalchemy import func, update
from sqlmodel import Session, select

from src.cms.core.exceptions import CmsError, EntityValidationError
from src.cms.core.models.pagination import PagedResult, page_offset, validate_pagination
from src.cms.entities.core._base import Entity, EntityTable, utc_now
from src.cms.runtime.context import get_current_user_id

TEntity = TypeVar("TEntity", bound=Entity)
TTable = TypeVar("TTable", bound=EntityTable)
TResult = TypeVar("TResult")

# Session.info flag raised by the unit of work while it owns the transaction.
EXPLICIT_TRANSACTION = "cms.explicit_transaction"

_IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "created_by_user_id"})


def contains_ci(column: Any, term: str) -> Any:
    """Case-insensitive substring match with LIKE wildcards escaped."""
    return func.lower(column).contains(term.lower(), autoescape=True)


def equals_ci(column: Any, value: str) -> Any:
    return func.lower(column) == value.lower()


class SoftDeleteRepository(Generic[TEntity, TTable]):
    """Data-access layer shared by every CMS entity."""

    entity_model: type[Entity]
    table_model: type[EntityTable]

    def __init__(
        self,
        session: Session,
        entity_model: type[Entity] | None = None,
        table_model: type[EntityTable] | None = None,
    ) -> None:
        self._session = session
        if entity_model is not None:
            self.entity_model = entity_model
        if table_model is not None:
            self.table_model = table_model

    @property
    def session(self) -> Session:
        return self._session

    @property
    def entity_name(self) -> str:
        return self.entity_model.__name__

    # ------------------------------------------------------------------
    # Query building and conversion
    # ------------------------------------------------------------------

    def _scope(self) -> list[Any]:
        """Criteria applied to every statement issued by this repository."""
        return []

    def _conditions(self, criteria: Iterable[Any], include_deleted: bool) -> list[Any]:
        conditions = [*self._scope(), *criteria]
        if not include_deleted:
            conditions.append(self.table_model.is_deleted == False)  # noqa: E712
        return conditions

    def _select(self, *criteria: Any, include_deleted: bool = False):
        statement = select(self.table_model)
        conditions = self._conditions(criteria, include_deleted)
        if conditions:
            statement = statement.where(*conditions)
        return statement

    def _count(self, *criteria: Any, include_deleted: bool = False) -> int:
        statement = select(func.count()).select_from(self.table_model)
        conditions = self._conditions(criteria, include_deleted)
        if conditions:
            statement = statement.where(*conditions)
        return self._session.exec(statement).one()

    def _ordered(self, statement, order_by: Any = None):
        if order_by is None:
            return statement.order_by(self.table_model.id)
        if isinstance(order_by, (list, tuple)):
            return statement.order_by(*order_by)
        return statement.order_by(order_by)

    def _column_names(self) -> set[str]:
        return set(self.table_model.model_fields)

    def _to_entity(self, row: EntityTable) -> TEntity:
        return self.entity_model.model_validate(row, from_attributes=True)  # type: ignore[return-value]

    def _to_entities(self, rows: Iterable[EntityTable]) -> list[TEntity]:
        return [self._to_entity(row) for row in rows]

    def _list(self, statement) -> list[TEntity]:
        return self._to_entities(self._session.exec(statement).all())

    def _first(self, statement) -> TEntity | None:
        row = self._session.exec(statement).first()
        return self._to_entity(row) if row is not None else None

    def _get_row(self, entity_id: int, include_deleted: bool = False) -> EntityTable | None:
        statement = self._select(
            self.table_model.id == entity_id, include_deleted=include_deleted
        )
        return self._session.exec(statement).first()

    def _paged(
        self,
        page: int,
        page_size: int,
        *criteria: Any,
        order_by: Any = None,
        include_deleted: bool = False,
    ) -> PagedResult[TEntity]:
        validate_pagination(page, page_size)
        total = self._count(*criteria, include_deleted=include_deleted)
        statement = self._ordered(
            self._select(*criteria, include_deleted=include_deleted), order_by
        )
        rows = self._session.exec(
            statement.offset(page_offset(page, page_size)).limit(page_size)
        ).all()
        return PagedResult[self.entity_model](  # type: ignore[name-defined]
            data=self._to_entities(rows),
            page_number=page,
            page_size=page_size,
            total_count=total,
        )

    @staticmethod
    def _resolve_id(entity_or_id: "Entity | int") -> int:
        entity_id = entity_or_id.id if isinstance(entity_or_id, Entity) else entity_or_id
        if entity_id is None:
            raise EntityValidationError("Entity must be persisted before this operation")
        return entity_id

    @contextmanager
    def _failure_logged(self, action: str, **context: Any) -> Iterator[None]:
        """Log unexpected failures with their context, then let them propagate."""
        try:
            yield
        except CmsError:
            raise
        except Exception as e:
            logger.error(
                "Failed to {} {}",
                action,
                self.entity_name,
                extra={
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    **context,
                },
            )
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, entity_id: int) -> TEntity | None:
        row = self._get_row(entity_id)
        return self._to_entity(row) if row is not None else None

    def get_by_id_include_deleted(self, entity_id: int) -> TEntity | None:
        row = self._get_row(entity_id, include_deleted=True)
        return self._to_entity(row) if row is not None else None

    def get_by_ids(self, entity_ids: Iterable[int]) -> list[TEntity]:
        ids = list(entity_ids)
        if not ids:
            return []
        return self._list(self._ordered(self._select(self.table_model.id.in_(ids))))

    def get_all(self) -> list[TEntity]:
        return self._list(self._ordered(self._select()))

    def get_all_include_deleted(self) -> list[TEntity]:
        return self._list(self._ordered(self._select(include_deleted=True)))

    def find(self, *criteria: Any, order_by: Any = None) -> list[TEntity]:
        return self._list(self._ordered(self._select(*criteria), order_by))

    def find_include_deleted(self, *criteria: Any, order_by: Any = None) -> list[TEntity]:
        return self._list(
            self._ordered(self._select(*criteria, include_deleted=True), order_by)
        )

    def first_or_default(self, *criteria: Any, order_by: Any = None) -> TEntity | None:
        return self._first(self._ordered(self._select(*criteria), order_by))

    def first_or_default_include_deleted(
        self, *criteria: Any, order_by: Any = None
    ) -> TEntity | None:
        return self._first(
            self._ordered(self._select(*criteria, include_deleted=True), order_by)
        )

    def any(self, *criteria: Any) -> bool:
        statement = select(self.table_model.id).where(
            *self._conditions(criteria, include_deleted=False)
        )
        return self._session.exec(statement.limit(1)).first() is not None

    def any_include_deleted(self, *criteria: Any) -> bool:
        """Like ``any`` but soft-deleted rows count, as they do for unique columns."""
        statement = select(self.table_model.id).where(
            *self._conditions(criteria, include_deleted=True)
        )
        return self._session.exec(statement.limit(1)).first() is not None

    def exists(self, entity_id: int) -> bool:
        return self.any(self.table_model.id == entity_id)

    def count(self, *criteria: Any) -> int:
        return self._count(*criteria)

    def count_include_deleted(self, *criteria: Any) -> int:
        return self._count(*criteria, include_deleted=True)

    def get_paged(self, page: int, page_size: int) -> list[TEntity]:
        """Return one page of live records ordered by id."""
        validate_pagination(page, page_size)
        statement = self._ordered(self._select())
        return self._list(statement.offset(page_offset(page, page_size)).limit(page_size))

    def get_paged_include_deleted(self, page: int, page_size: int) -> list[TEntity]:
        validate_pagination(page, page_size)
        statement = self._ordered(self._select(include_deleted=True))
        return self._list(statement.offset(page_offset(page, page_size)).limit(page_size))

    def get_paged_result(
        self, page: int, page_size: int, *criteria: Any, order_by: Any = None
    ) -> PagedResult[TEntity]:
        """Return a page plus total count for the live records matching ``criteria``."""
        return self._paged(page, page_size, *criteria, order_by=order_by)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _stamp_created(self, row: EntityTable) -> None:
        now = utc_now()
        user_id = get_current_user_id()
        row.created_at = now
        row.updated_at = now
        if row.created_by_user_id is None:
            row.created_by_user_id = user_id
        if row.updated_by_user_id is None:
            row.updated_by_user_id = user_id

    def _stamp_updated(self, row: EntityTable, user_id: int | None = None) -> None:
        row.updated_at = utc_now()
        row.updated_by_user_id = user_id if user_id is not None else get_current_user_id()

    def _new_row(self, entity: Entity) -> EntityTable:
        data = entity.model_dump(include=self._column_names())
        if data.get("id") is None:
            data.pop("id", None)
        return self.table_model(**data)

    def _apply(self, row: EntityTable, entity: Entity) -> None:
        data = entity.model_dump(include=self._column_names() - _IMMUTABLE_COLUMNS)
        for name, value in data.items():
            setattr(row, name, value)

    def add(self, entity: TEntity) -> TEntity:
        """Stage a new record and flush it so the returned entity carries its id."""
        row = self._new_row(entity)
        self._stamp_created(row)
        with self._failure_logged("add"):
            self._session.add(row)
            self._session.flush()
        logger.debug("Added {} {}", self.entity_name, row.id)
        return self._to_entity(row)

    def add_range(self, entities: Iterable[TEntity]) -> list[TEntity]:
        rows = []
        for entity in entities:
            row = self._new_row(entity)
            self._stamp_created(row)
            rows.append(row)
        with self._failure_logged("add range of"):
            self._session.add_all(rows)
            self._session.flush()
        return self._to_entities(rows)

    def update(self, entity: TEntity) -> TEntity | None:
        """Copy the entity's columns onto its stored row; None when the row is gone."""
        entity_id = self._resolve_id(entity)
        row = self._session.get(self.table_model, entity_id)
        if row is None:
            logger.warning("{} {} not found for update", self.entity_name, entity_id)
            return None

        self._apply(row, entity)
        self._stamp_updated(row)
        with self._failure_logged("update", entity_id=entity_id):
            self._session.add(row)
            self._session.flush()
        return self._to_entity(row)

    def update_range(self, entities: Iterable[TEntity]) -> list[TEntity]:
        updated = (self.update(entity) for entity in entities)
        return [entity for entity in updated if entity is not None]

    def remove(self, entity_or_id: "TEntity | int") -> bool:
        """Physically delete a record."""
        entity_id = self._resolve_id(entity_or_id)
        row = self._session.get(self.table_model, entity_id)
        if row is None:
            return False
        with self._failure_logged("remove", entity_id=entity_id):
            self._session.delete(row)
            self._session.flush()
        return True

    def remove_range(self, entities_or_ids: Iterable["TEntity | int"]) -> int:
        return sum(1 for item in entities_or_ids if self.remove(item))

    def _mark_deleted(self, row: EntityTable, user_id: int | None) -> None:
        now = utc_now()
        row.is_deleted = True
        row.deleted_at = now
        row.deleted_by_user_id = user_id
        row.updated_at = now
        row.updated_by_user_id = user_id
        self._session.add(row)

    def soft_delete(
        self, entity_or_id: "TEntity | int", deleted_by_user_id: int | None = None
    ) -> bool:
        """Flag a live record as deleted and save; False when no live record matches."""
        entity_id = self._resolve_id(entity_or_id)
        user_id = deleted_by_user_id if deleted_by_user_id is not None else get_current_user_id()

        with self._failure_logged("soft delete", entity_id=entity_id):
            row = self._get_row(entity_id)
            if row is None:
                logger.warning("{} {} not found for soft delete", self.entity_name, entity_id)
                return False

            self._mark_deleted(row, user_id)
            self.save_changes()

        logger.info("Soft deleted {} {} by user {}", self.entity_name, entity_id, user_id)
        return True

    def soft_delete_range(
        self,
        entities_or_ids: Iterable["TEntity | int"],
        deleted_by_user_id: int | None = None,
    ) -> int:
        user_id = deleted_by_user_id if deleted_by_user_id is not None else get_current_user_id()
        deleted = 0
        with self._failure_logged("soft delete range of"):
            for item in entities_or_ids:
                row = self._get_row(self._resolve_id(item))
                if row is None:
                    continue
                self._mark_deleted(row, user_id)
                deleted += 1
            if deleted:
                self.save_changes()
        return deleted

    def restore(self, entity_id: int, restored_by_user_id: int | None = None) -> bool:
        """Clear the soft-delete triple; False when missing or not deleted."""
        user_id = restored_by_user_id if restored_by_user_id is not None else get_current_user_id()

        with self._failure_logged("restore", entity_id=entity_id):
            row = self._get_row(entity_id, include_deleted=True)
            if row is None or not row.is_deleted:
                logger.warning("{} {} not found or not deleted", self.entity_name, entity_id)
                return False

            row.is_deleted = False
            row.deleted_at = None
            row.deleted_by_user_id = None
            self._stamp_updated(row, user_id)
            self._session.add(row)
            self.save_changes()

        logger.info("Restored {} {} by user {}", self.entity_name, entity_id, user_id)
        return True

    def _bulk_set_deleted(self, criteria: tuple[Any, ...], deleted: bool, user_id: int | None) -> int:
        if not criteria:
            raise EntityValidationError("A bulk soft delete or restore needs at least one criterion")

        now = utc_now()
        values: dict[str, Any] = {
            "is_deleted": deleted,
            "deleted_at": now if deleted else None,
            "deleted_by_user_id": user_id if deleted else None,
            "updated_at": now,
            "updated_by_user_id": user_id,
        }
        statement = (
            update(self.table_model)
            .where(
                self.table_model.is_deleted == (not deleted),
                *self._scope(),
                *criteria,
            )
            .values(**values)
        )
        result = self._session.exec(statement)  # type: ignore[call-overload]
        self.save_changes()
        return result.rowcount or 0

    def batch_soft_delete(self, *criteria: Any, deleted_by_user_id: int | None = None) -> bool:
        user_id = deleted_by_user_id if deleted_by_user_id is not None else get_current_user_id()
        with self._failure_logged("batch soft delete"):
            affected = self._bulk_set_deleted(criteria, True, user_id)
        logger.info("Batch soft deleted {} {} rows", affected, self.entity_name)
        return affected > 0

    def batch_restore(self, *criteria: Any, restored_by_user_id: int | None = None) -> bool:
        user_id = restored_by_user_id if restored_by_user_id is not None else get_current_user_id()
        with self._failure_logged("batch restore"):
            affected = self._bulk_set_deleted(criteria, False, user_id)
        logger.info("Batch restored {} {} rows", affected, self.entity_name)
        return affected > 0

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @property
    def in_explicit_transaction(self) -> bool:
        return bool(self._session.info.get(EXPLICIT_TRANSACTION))

    def save_changes(self) -> int:
        """Persist pending work.

        Commits the session, or only flushes it while a unit of work holds an
        explicit transaction. Returns the number of pending objects written.
        """
        pending = len(self._session.new) + len(self._session.dirty) + len(self._session.deleted)
        try:
            if self.in_explicit_transaction:
                self._session.flush()
            else:
                self._session.commit()
        except Exception as e:
            if not self.in_explicit_transaction:
                self._session.rollback()
            logger.error(
                "Failed to save changes for {}",
                self.entity_name,
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )
            raise
        return pending

    def execute_in_transaction(self, operation: Callable[[], TResult]) -> TResult:
        """Run ``operation`` and save; roll back and re-raise if anything fails."""
        try:
            result = operation()
            self.save_changes()
            return result
        except Exception as e:
            if not self.in_explicit_transaction:
                self._session.rollback()
            if not isinstance(e, CmsError):
                logger.error(
                    "Transaction failed for {}",
                    self.entity_name,
                    extra={"error_type": type(e).__name__, "error_message": str(e)},
                )
            raise
