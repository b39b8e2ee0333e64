from sqlmodel import or_

from src.cms.core.models.pagination import PagedResult
from src.cms.core.models.search import LocationSearch, SortDirection
from src.cms.entities.core.address.repository import AddressRepository
from src.cms.entities.core.contact_details.repository import ContactDetailsRepository
from src.cms.entities.core.owner import OwnerType
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci

from .entity import Location
from .table import LocationTable

_SORT_COLUMNS = {
    "name": LocationTable.name,
    "location_code": LocationTable.location_code,
    "created_at": LocationTable.created_at,
}


class LocationRepository(SoftDeleteRepository[Location, LocationTable]):
    """Data-access layer for company locations."""

    entity_model = Location
    table_model = LocationTable

    def get_main_location(self, company_id: int | None = None) -> Location | None:
        criteria = [LocationTable.is_main_location == True]  # noqa: E712
        if company_id is not None:
            criteria.append(LocationTable.company_id == company_id)
        return self.first_or_default(*criteria)

    def get_locations_by_company(self, company_id: int) -> list[Location]:
        """Company's locations, main location first."""
        return self.find(
            LocationTable.company_id == company_id,
            order_by=[LocationTable.is_main_location.desc(), LocationTable.name],
        )

    def location_code_exists(self, location_code: str, exclude_location_id: int | None = None) -> bool:
        criteria = [equals_ci(LocationTable.location_code, location_code)]
        if exclude_location_id is not None:
            criteria.append(LocationTable.id != exclude_location_id)
        return self.any(*criteria)

    def get_with_addresses_and_contacts(self, location_id: int) -> Location | None:
        location = self.get_by_id(location_id)
        if location is None:
            return None
        location.addresses = AddressRepository(self._session).get_addresses_by_entity(
            location_id, OwnerType.LOCATION
        )
        location.contact_details = ContactDetailsRepository(
            self._session
        ).get_contact_details_by_entity(location_id, OwnerType.LOCATION)
        return location

    def search_locations(self, filters: LocationSearch) -> PagedResult[Location]:
        criteria = []
        if filters.term:
            criteria.append(
                or_(
                    contains_ci(LocationTable.name, filters.term),
                    contains_ci(LocationTable.description, filters.term),
                    contains_ci(LocationTable.location_code, filters.term),
                )
            )
        if filters.company_id is not None:
            criteria.append(LocationTable.company_id == filters.company_id)
        if filters.location_type:
            criteria.append(equals_ci(LocationTable.location_type, filters.location_type))
        if filters.is_active is not None:
            criteria.append(LocationTable.is_active == filters.is_active)
        if filters.is_main_location is not None:
            criteria.append(LocationTable.is_main_location == filters.is_main_location)

        column = _SORT_COLUMNS[filters.sort_by]
        order = column.desc() if filters.sort_direction is SortDirection.DESC else column.asc()
        return self._paged(
            filters.page, filters.page_size, *criteria, order_by=[order, LocationTable.id]
        )
