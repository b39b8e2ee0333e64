from sqlmodel import or_

from src.cms.entities.core.owner import OwnedRepository, OwnerType
from src.cms.entities.core.repository import equals_ci

from .entity import ContactDetails
from .table import ContactDetailsTable


class ContactDetailsRepository(OwnedRepository[ContactDetails, ContactDetailsTable]):
    """Data-access layer for contact details."""

    entity_model = ContactDetails
    table_model = ContactDetailsTable

    @staticmethod
    def _phone_matches(phone: str):
        return or_(
            ContactDetailsTable.primary_phone == phone,
            ContactDetailsTable.secondary_phone == phone,
            ContactDetailsTable.mobile == phone,
        )

    def get_default_contact_details(
        self, entity_id: int, entity_type: OwnerType | str
    ) -> ContactDetails | None:
        return self._get_default_for(entity_id, entity_type)

    def get_contact_details_by_entity(
        self, entity_id: int, entity_type: OwnerType | str
    ) -> list[ContactDetails]:
        return self._list_for(
            entity_id,
            entity_type,
            ContactDetailsTable.is_default.desc(),
            ContactDetailsTable.contact_type,
        )

    def get_contact_details_by_type(self, contact_type: str) -> list[ContactDetails]:
        return self.find(equals_ci(ContactDetailsTable.contact_type, contact_type))

    def get_by_email(self, email: str) -> ContactDetails | None:
        return self.first_or_default(
            or_(
                equals_ci(ContactDetailsTable.email, email),
                equals_ci(ContactDetailsTable.secondary_email, email),
            )
        )

    def get_by_phone(self, phone: str) -> ContactDetails | None:
        return self.first_or_default(self._phone_matches(phone))

    def set_default_contact_details(
        self, contact_details_id: int, entity_id: int, entity_type: OwnerType | str
    ) -> bool:
        return self._set_default_for(contact_details_id, entity_id, entity_type)

    def count_contact_details_by_entity(
        self, entity_id: int, entity_type: OwnerType | str
    ) -> int:
        return self._count_for(entity_id, entity_type)

    def email_exists(self, email: str, exclude_contact_details_id: int | None = None) -> bool:
        criteria = [equals_ci(ContactDetailsTable.email, email)]
        if exclude_contact_details_id is not None:
            criteria.append(ContactDetailsTable.id != exclude_contact_details_id)
        return self.any(*criteria)

    def phone_exists(self, phone: str, exclude_contact_details_id: int | None = None) -> bool:
        criteria = [self._phone_matches(phone)]
        if exclude_contact_details_id is not None:
            criteria.append(ContactDetailsTable.id != exclude_contact_details_id)
        return self.any(*criteria)
