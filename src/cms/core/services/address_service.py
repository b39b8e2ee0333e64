"""Address use cases."""

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.models.pagination import PagedResult
from src.cms.core.services.base import OwnedEntityService, apply_changes, require_id, require_text
from src.cms.entities.core.address import Address
from src.cms.entities.core.owner import OwnerType


class AddressCreate(BaseModel):
    street: str = Field(min_length=1, max_length=200)
    house_nr: str | None = Field(default=None, max_length=20)
    city: str = Field(min_length=1, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    region: str | None = Field(default=None, max_length=100)
    district: str | None = Field(default=None, max_length=100)
    address_type: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=500)
    is_default: bool = False


class AddressUpdate(BaseModel):
    street: str | None = Field(default=None, min_length=1, max_length=200)
    house_nr: str | None = Field(default=None, max_length=20)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, min_length=1, max_length=100)
    postal_code: str | None = Field(default=None, min_length=1, max_length=20)
    region: str | None = Field(default=None, max_length=100)
    district: str | None = Field(default=None, max_length=100)
    address_type: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=500)


class AddressService(OwnedEntityService):
    entity_label = "Address"

    def get_address(self, address_id: int) -> Address:
        require_id(address_id, "Address")
        with self._logged("get", address_id=address_id):
            return self._found(self._uow.addresses.get_by_id(address_id), address_id)

    def get_addresses(self, page: int, page_size: int) -> PagedResult[Address]:
        with self._logged("list"):
            return self._uow.addresses.get_paged_result(page, page_size)

    def get_addresses_by_entity(
        self, entity_type: OwnerType | str, entity_id: int
    ) -> list[Address]:
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        with self._logged("list", entity_type=owner_type.value, entity_id=entity_id):
            return self._uow.addresses.get_addresses_by_entity(entity_id, owner_type)

    def get_addresses_by_entity_paged(
        self, entity_type: OwnerType | str, entity_id: int, page: int, page_size: int
    ) -> PagedResult[Address]:
        return PagedResult[Address].create(
            self.get_addresses_by_entity(entity_type, entity_id), page, page_size
        )

    def get_default_address(self, entity_type: OwnerType | str, entity_id: int) -> Address | None:
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        return self._uow.addresses.get_default_address(entity_id, owner_type)

    def search_addresses(self, term: str, page: int, page_size: int) -> PagedResult[Address]:
        term = require_text(term, "Search term")
        with self._logged("search", term=term):
            return self._uow.addresses.search_addresses(term, page, page_size)

    def create_address(
        self, data: AddressCreate, entity_type: OwnerType | str, entity_id: int
    ) -> Address:
        """Create an address for an existing owner.

        The owner's first address, or one created with ``is_default``, becomes
        the owner's only default.
        """
        owner_type = self._require_owner(entity_type, entity_id)
        address = Address(**data.model_dump())
        address.assign_owner(owner_type, entity_id)

        def operation() -> Address:
            repository = self._uow.addresses
            first = repository.count_addresses_by_entity(entity_id, owner_type) == 0
            created = repository.add(address)
            if data.is_default or first:
                repository.set_default_address(created.id, entity_id, owner_type)
                created.is_default = True
            return created

        with self._logged("create", entity_type=owner_type.value, entity_id=entity_id):
            created = self._uow.execute_in_transaction(operation)
        logger.info(
            "Address {} created for {} {}", created.id, owner_type.value, entity_id
        )
        return created

    def update_address(self, address_id: int, data: AddressUpdate) -> Address:
        require_id(address_id, "Address")
        with self._logged("update", address_id=address_id):
            address = self._found(self._uow.addresses.get_by_id(address_id), address_id)
            updated = self._uow.addresses.update(apply_changes(address, data))
            self._uow.save_changes()
        logger.info("Address {} updated", address_id)
        return self._found(updated, address_id)

    def delete_address(self, address_id: int) -> bool:
        require_id(address_id, "Address")
        with self._logged("delete", address_id=address_id):
            deleted = self._uow.addresses.soft_delete(address_id)
        if not deleted:
            logger.warning("Failed to delete address {} - not found", address_id)
        return deleted

    def bulk_delete_addresses(self, address_ids: list[int]) -> int:
        for address_id in address_ids:
            require_id(address_id, "Address")
        with self._logged("bulk delete", count=len(address_ids)):
            return self._uow.bulk_delete(self._uow.addresses.table_model, address_ids)

    def set_default_address(
        self, address_id: int, entity_type: OwnerType | str, entity_id: int
    ) -> bool:
        require_id(address_id, "Address")
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        with self._logged("set default", address_id=address_id):
            return self._uow.addresses.set_default_address(address_id, entity_id, owner_type)
