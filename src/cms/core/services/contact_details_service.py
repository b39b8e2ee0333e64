"""Contact details use cases."""

from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.models.pagination import PagedResult
from src.cms.core.services.base import OwnedEntityService, apply_changes, require_id
from src.cms.entities.core.contact_details import ContactDetails
from src.cms.entities.core.owner import OwnerType


class ContactDetailsCreate(BaseModel):
    primary_phone: str | None = Field(default=None, max_length=20)
    secondary_phone: str | None = Field(default=None, max_length=20)
    mobile: str | None = Field(default=None, max_length=20)
    fax: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    secondary_email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    linkedin_profile: str | None = Field(default=None, max_length=500)
    twitter_profile: str | None = Field(default=None, max_length=500)
    facebook_profile: str | None = Field(default=None, max_length=500)
    instagram_profile: str | None = Field(default=None, max_length=500)
    whatsapp_number: str | None = Field(default=None, max_length=20)
    telegram_handle: str | None = Field(default=None, max_length=100)
    additional_contacts: dict[str, Any] = Field(default_factory=dict)
    contact_type: str | None = Field(default=None, max_length=50)
    is_default: bool = False


class ContactDetailsUpdate(BaseModel):
    primary_phone: str | None = Field(default=None, max_length=20)
    secondary_phone: str | None = Field(default=None, max_length=20)
    mobile: str | None = Field(default=None, max_length=20)
    fax: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    secondary_email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    linkedin_profile: str | None = Field(default=None, max_length=500)
    twitter_profile: str | None = Field(default=None, max_length=500)
    facebook_profile: str | None = Field(default=None, max_length=500)
    instagram_profile: str | None = Field(default=None, max_length=500)
    whatsapp_number: str | None = Field(default=None, max_length=20)
    telegram_handle: str | None = Field(default=None, max_length=100)
    additional_contacts: dict[str, Any] | None = None
    contact_type: str | None = Field(default=None, max_length=50)


class ContactDetailsService(OwnedEntityService):
    entity_label = "ContactDetails"

    def get_contact_details(self, contact_details_id: int) -> ContactDetails:
        require_id(contact_details_id, "Contact details")
        with self._logged("get", contact_details_id=contact_details_id):
            return self._found(
                self._uow.contact_details.get_by_id(contact_details_id), contact_details_id
            )

    def get_contact_details_paged(self, page: int, page_size: int) -> PagedResult[ContactDetails]:
        with self._logged("list"):
            return self._uow.contact_details.get_paged_result(page, page_size)

    def get_contact_details_by_entity(
        self, entity_type: OwnerType | str, entity_id: int
    ) -> list[ContactDetails]:
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        with self._logged("list", entity_type=owner_type.value, entity_id=entity_id):
            return self._uow.contact_details.get_contact_details_by_entity(entity_id, owner_type)

    def get_default_contact_details(
        self, entity_type: OwnerType | str, entity_id: int
    ) -> ContactDetails | None:
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        return self._uow.contact_details.get_default_contact_details(entity_id, owner_type)

    def create_contact_details(
        self, data: ContactDetailsCreate, entity_type: OwnerType | str, entity_id: int
    ) -> ContactDetails:
        owner_type = self._require_owner(entity_type, entity_id)
        contact_details = ContactDetails(**data.model_dump())
        contact_details.assign_owner(owner_type, entity_id)

        def operation() -> ContactDetails:
            repository = self._uow.contact_details
            first = repository.count_contact_details_by_entity(entity_id, owner_type) == 0
            created = repository.add(contact_details)
            if data.is_default or first:
                repository.set_default_contact_details(created.id, entity_id, owner_type)
                created.is_default = True
            return created

        with self._logged("create", entity_type=owner_type.value, entity_id=entity_id):
            created = self._uow.execute_in_transaction(operation)
        logger.info(
            "Contact details {} created for {} {}", created.id, owner_type.value, entity_id
        )
        return created

    def update_contact_details(
        self, contact_details_id: int, data: ContactDetailsUpdate
    ) -> ContactDetails:
        require_id(contact_details_id, "Contact details")
        if data.additional_contacts is None and "additional_contacts" in data.model_fields_set:
            data.additional_contacts = {}
        with self._logged("update", contact_details_id=contact_details_id):
            current = self._found(
                self._uow.contact_details.get_by_id(contact_details_id), contact_details_id
            )
            updated = self._uow.contact_details.update(apply_changes(current, data))
            self._uow.save_changes()
        return self._found(updated, contact_details_id)

    def delete_contact_details(self, contact_details_id: int) -> bool:
        require_id(contact_details_id, "Contact details")
        with self._logged("delete", contact_details_id=contact_details_id):
            deleted = self._uow.contact_details.soft_delete(contact_details_id)
        if not deleted:
            logger.warning("Failed to delete contact details {} - not found", contact_details_id)
        return deleted

    def bulk_delete_contact_details(self, contact_details_ids: list[int]) -> int:
        for contact_details_id in contact_details_ids:
            require_id(contact_details_id, "Contact details")
        with self._logged("bulk delete", count=len(contact_details_ids)):
            return self._uow.bulk_delete(
                self._uow.contact_details.table_model, contact_details_ids
            )

    def set_default_contact_details(
        self, contact_details_id: int, entity_type: OwnerType | str, entity_id: int
    ) -> bool:
        require_id(contact_details_id, "Contact details")
        owner_type = OwnerType.parse(entity_type)
        require_id(entity_id, "Entity")
        with self._logged("set default", contact_details_id=contact_details_id):
            return self._uow.contact_details.set_default_contact_details(
                contact_details_id, entity_id, owner_type
            )
