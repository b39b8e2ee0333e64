"""Shared plumbing for application services."""

import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from src.cms.core.exceptions import CmsError, EntityNotFoundError, EntityValidationError
from src.cms.core.unit_of_work import UnitOfWork
from src.cms.entities.core._base import Entity
from src.cms.entities.core.owner import OwnerType

TEntity = TypeVar("TEntity", bound=Entity)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def require_id(value: int | None, label: str) -> int:
    if value is None or value <= 0:
        raise EntityValidationError(f"{label} ID must be greater than 0")
    return value


def require_text(value: str | None, label: str) -> str:
    if value is None or not value.strip():
        raise EntityValidationError(f"{label} is required")
    return value.strip()


def slugify(value: str) -> str:
    """Lower-case, hyphen separated URL segment built from ``value``."""
    slug = _NON_SLUG_CHARS.sub("-", value.strip().lower()).strip("-")
    if not slug:
        raise EntityValidationError(f"Cannot build a slug from '{value}'")
    return slug


def apply_changes(entity: TEntity, changes: BaseModel | dict[str, Any]) -> TEntity:
    """Return a validated copy of ``entity`` with the fields explicitly set on ``changes``."""
    update = changes if isinstance(changes, dict) else changes.model_dump(exclude_unset=True)
    try:
        return type(entity).model_validate({**entity.model_dump(), **update})
    except ValidationError as e:
        raise EntityValidationError(str(e)) from e


class EntityService:
    """Base for services that orchestrate repositories through a unit of work."""

    entity_label = "Entity"

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    @property
    def uow(self) -> UnitOfWork:
        return self._uow

    def _found(self, entity: TEntity | None, entity_id: Any) -> TEntity:
        if entity is None:
            raise EntityNotFoundError(self.entity_label, entity_id)
        return entity

    @contextmanager
    def _logged(self, action: str, **context: Any) -> Iterator[None]:
        """Log unexpected failures of ``action`` and re-raise them."""
        try:
            yield
        except CmsError:
            raise
        except Exception as e:
            logger.error(
                "Error while trying to {} {}",
                action,
                self.entity_label,
                extra={"error_type": type(e).__name__, "error_message": str(e), **context},
            )
            raise


class OwnedEntityService(EntityService):
    """Base for services of records owned by a user, company or location."""

    def _require_owner(self, entity_type: OwnerType | str, entity_id: int) -> OwnerType:
        """Parse ``entity_type`` and check that the owner record exists."""
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        owners = {
            OwnerType.USER: self._uow.users,
            OwnerType.COMPANY: self._uow.companies,
            OwnerType.LOCATION: self._uow.locations,
        }
        if not owners[owner_type].exists(entity_id):
            raise EntityValidationError(f"{owner_type.value} with ID {entity_id} not found")
        return owner_type
