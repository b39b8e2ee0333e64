from sqlmodel import or_

from src.cms.core.models.pagination import PagedResult
from src.cms.entities.core.owner import OwnedRepository, OwnerType
from src.cms.entities.core.repository import contains_ci, equals_ci

from .entity import Address
from .table import AddressTable


class AddressRepository(OwnedRepository[Address, AddressTable]):
    """Data-access layer for addresses."""

    entity_model = Address
    table_model = AddressTable

    def get_default_address(self, entity_id: int, entity_type: OwnerType | str) -> Address | None:
        return self._get_default_for(entity_id, entity_type)

    def get_addresses_by_entity(
        self, entity_id: int, entity_type: OwnerType | str
    ) -> list[Address]:
        """Owner's addresses, default first, then by address type."""
        return self._list_for(
            entity_id,
            entity_type,
            AddressTable.is_default.desc(),
            AddressTable.address_type,
        )

    def get_addresses_by_type(self, address_type: str) -> list[Address]:
        return self.find(equals_ci(AddressTable.address_type, address_type))

    def get_addresses_by_location(
        self, city: str, state: str | None = None, country: str | None = None
    ) -> list[Address]:
        criteria = [equals_ci(AddressTable.city, city)]
        if state:
            criteria.append(equals_ci(AddressTable.state, state))
        if country:
            criteria.append(equals_ci(AddressTable.country, country))
        return self.find(*criteria)

    def set_default_address(
        self, address_id: int, entity_id: int, entity_type: OwnerType | str
    ) -> bool:
        return self._set_default_for(address_id, entity_id, entity_type)

    def count_addresses_by_entity(self, entity_id: int, entity_type: OwnerType | str) -> int:
        return self._count_for(entity_id, entity_type)

    def address_exists(
        self,
        street: str,
        city: str,
        postal_code: str,
        exclude_address_id: int | None = None,
    ) -> bool:
        criteria = [
            equals_ci(AddressTable.street, street),
            equals_ci(AddressTable.city, city),
            equals_ci(AddressTable.postal_code, postal_code),
        ]
        if exclude_address_id is not None:
            criteria.append(AddressTable.id != exclude_address_id)
        return self.any(*criteria)

    def search_addresses(self, term: str | None, page: int, page_size: int) -> PagedResult[Address]:
        criteria = []
        if term and term.strip():
            term = term.strip()
            criteria.append(
                or_(
                    contains_ci(AddressTable.street, term),
                    contains_ci(AddressTable.city, term),
                    contains_ci(AddressTable.state, term),
                    contains_ci(AddressTable.country, term),
                    contains_ci(AddressTable.postal_code, term),
                )
            )
        return self._paged(
            page, page_size, *criteria, order_by=[AddressTable.city, AddressTable.street]
        )

    def get_recent_addresses(self, count: int = 10) -> list[Address]:
        statement = self._select().order_by(AddressTable.created_at.desc()).limit(count)
        return self._list(statement)
