"""Owner discriminator for records attached to a user, company or location.

Addresses and contact details are owned by exactly one of the three. Each
owner kind maps to its own nullable foreign-key column, and the owner name
accepted from callers is resolved through ``OwnerType.parse`` so an unknown
name is rejected instead of silently matching nothing.
"""

from enum import Enum
from typing import Any

from loguru import logger
from pydantic import Field as PydanticField
from sqlmodel import Field

from src.cms.core.exceptions import EntityValidationError
from src.cms.entities.core._base import Entity, EntityTable
from src.cms.entities.core.repository import SoftDeleteRepository, TEntity, TTable
from src.cms.runtime.context import get_current_user_id


class OwnerType(str, Enum):
    """Kinds of records that can own addresses and contact details."""

    USER = "User"
    COMPANY = "Company"
    LOCATION = "Location"

    @property
    def column_name(self) -> str:
        """Foreign-key column holding the owner id on owned tables."""
        return f"{self.name.lower()}_id"

    @classmethod
    def parse(cls, value: "OwnerType | str | None") -> "OwnerType":
        """Resolve a case-insensitive owner name, rejecting anything unknown."""
        if isinstance(value, OwnerType):
            return value
        if value is None or not str(value).strip():
            raise EntityValidationError("Entity type cannot be null or empty")

        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise EntityValidationError(f"Invalid entity type: {value}")


class OwnedEntity(Entity):
    """Domain base for records owned by a user, company or location."""

    is_default: bool = PydanticField(default=False, description="Owner's default record")
    user_id: int | None = PydanticField(default=None, description="Owning user")
    company_id: int | None = PydanticField(default=None, description="Owning company")
    location_id: int | None = PydanticField(default=None, description="Owning location")

    @property
    def owner(self) -> tuple[OwnerType, int] | None:
        for owner_type in OwnerType:
            owner_id = getattr(self, owner_type.column_name)
            if owner_id is not None:
                return owner_type, owner_id
        return None

    def assign_owner(self, entity_type: "OwnerType | str", entity_id: int) -> None:
        owner_type = OwnerType.parse(entity_type)
        for member in OwnerType:
            setattr(self, member.column_name, entity_id if member is owner_type else None)


class OwnedEntityTable(EntityTable):
    """Persistence base carrying one foreign key per owner kind."""

    is_default: bool = Field(default=False)
    user_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    company_id: int | None = Field(default=None, foreign_key="companies.id", index=True)
    location_id: int | None = Field(default=None, foreign_key="locations.id", index=True)


class OwnedRepository(SoftDeleteRepository[TEntity, TTable]):
    """Queries shared by repositories of owned records."""

    def _owner_criterion(self, entity_id: int, entity_type: "OwnerType | str") -> Any:
        owner_type = OwnerType.parse(entity_type)
        if entity_id <= 0:
            raise EntityValidationError("Entity ID must be greater than 0")
        return getattr(self.table_model, owner_type.column_name) == entity_id

    def _get_default_for(self, entity_id: int, entity_type: "OwnerType | str") -> TEntity | None:
        return self.first_or_default(
            self._owner_criterion(entity_id, entity_type),
            self.table_model.is_default == True,  # noqa: E712
        )

    def _list_for(self, entity_id: int, entity_type: "OwnerType | str", *order_by: Any) -> list[TEntity]:
        return self.find(
            self._owner_criterion(entity_id, entity_type),
            order_by=[*order_by, self.table_model.id],
        )

    def _count_for(self, entity_id: int, entity_type: "OwnerType | str") -> int:
        return self.count(self._owner_criterion(entity_id, entity_type))

    def _set_default_for(
        self, record_id: int, entity_id: int, entity_type: "OwnerType | str"
    ) -> bool:
        """Make ``record_id`` the owner's only default inside one transaction.

        Returns False when the record does not exist. Raises
        EntityValidationError when it belongs to a different owner; in that
        case nothing is written.
        """
        if record_id <= 0:
            raise EntityValidationError(f"{self.entity_name} ID must be greater than 0")
        owner_criterion = self._owner_criterion(entity_id, entity_type)
        owner_type = OwnerType.parse(entity_type)

        def operation() -> bool:
            row = self._get_row(record_id)
            if row is None:
                logger.warning(
                    "{} {} not found for setting default", self.entity_name, record_id
                )
                return False

            if getattr(row, owner_type.column_name) != entity_id:
                logger.warning(
                    "{} {} does not belong to {} {}",
                    self.entity_name,
                    record_id,
                    owner_type.value,
                    entity_id,
                )
                raise EntityValidationError(
                    f"{self.entity_name} does not belong to the specified entity"
                )

            user_id = get_current_user_id()
            current_defaults = self._session.exec(
                self._select(
                    owner_criterion,
                    self.table_model.is_default == True,  # noqa: E712
                    self.table_model.id != record_id,
                )
            ).all()
            for current in current_defaults:
                current.is_default = False
                self._stamp_updated(current, user_id)
                self._session.add(current)

            row.is_default = True
            self._stamp_updated(row, user_id)
            self._session.add(row)
            self._session.flush()
            return True

        result = self.execute_in_transaction(operation)
        if result:
            logger.info(
                "Default {} set to {} for {} {}",
                self.entity_name,
                record_id,
                owner_type.value,
                entity_id,
            )
        return result
