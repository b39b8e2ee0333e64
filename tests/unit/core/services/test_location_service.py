"""Unit tests for LocationService and CompanyService."""

import pytest

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.models.search import LocationSearch
from src.cms.core.services import AddressCreate, CompanyUpdate, LocationCreate, LocationUpdate
from src.cms.entities.core.owner import OwnerType


def _main_ids(service, company_id) -> list[int]:
    return [loc.id for loc in service.get_locations_by_company(company_id) if loc.is_main_location]


class TestLocations:
    """Location CRUD and the main-location rule."""

    def test_create_for_missing_company_is_rejected(self, location_service):
        """Should refuse locations of unknown companies."""
        with pytest.raises(EntityValidationError, match="Company with ID 99 not found"):
            location_service.create_location(LocationCreate(company_id=99, name="Nowhere"))

    def test_new_main_location_demotes_previous(self, location_service, company, location):
        """Should keep a single main location per company."""
        branch = location_service.create_location(
            LocationCreate(company_id=company.id, name="Branch", is_main_location=True)
        )

        assert _main_ids(location_service, company.id) == [branch.id]
        assert location_service.get_main_location(company.id).id == branch.id

    def test_set_main_location(self, location_service, company, location):
        """Should move the main flag to the given location."""
        branch = location_service.create_location(LocationCreate(company_id=company.id, name="Depot"))

        location_service.set_main_location(branch.id)

        assert _main_ids(location_service, company.id) == [branch.id]

    def test_duplicate_code_is_rejected(self, location_service, company, location):
        """Should enforce unique location codes, ignoring case."""
        with pytest.raises(EntityValidationError, match="code 'hq' already exists"):
            location_service.create_location(
                LocationCreate(company_id=company.id, name="Copy", location_code="hq")
            )

    def test_update_keeps_own_code(self, location_service, location):
        """Should allow saving a location with its unchanged code."""
        updated = location_service.update_location(
            location.id, LocationUpdate(location_code="HQ", description="Main building")
        )

        assert updated.description == "Main building"

    def test_get_location_loads_addresses(self, location_service, address_service, location):
        """Should attach the location's addresses."""
        address_service.create_address(
            AddressCreate(street="Harbour 1", city="Hamburg", country="DE", postal_code="20457"),
            OwnerType.LOCATION,
            location.id,
        )

        loaded = location_service.get_location(location.id)

        assert [address.street for address in loaded.addresses] == ["Harbour 1"]

    def test_search_filters_by_term(self, location_service, company, location):
        """Should match names case-insensitively."""
        location_service.create_location(LocationCreate(company_id=company.id, name="Warehouse"))

        result = location_service.search_locations(LocationSearch(search_term="HEAD"))

        assert [loc.id for loc in result.data] == [location.id]

    def test_delete(self, location_service, location):
        """Should soft delete once and then report not found."""
        assert location_service.delete_location(location.id) is True
        assert location_service.delete_location(location.id) is False
        with pytest.raises(EntityNotFoundError):
            location_service.get_location(location.id)


class TestCompanies:
    """Company reads and updates."""

    def test_get_active_company_with_locations(self, company_service, company, location):
        """Should return the active company when no id is given."""
        loaded = company_service.get_company()

        assert loaded.id == company.id
        assert [loc.id for loc in loaded.locations] == [location.id]

    def test_missing_company_raises(self, company_service):
        """Should raise when no company exists."""
        with pytest.raises(EntityNotFoundError):
            company_service.get_company()

    def test_update_upper_cases_currency(self, company_service, company):
        """Should normalise the currency code."""
        updated = company_service.update_company(company.id, CompanyUpdate(currency="eur", name="Acme GmbH"))

        assert updated.currency == "EUR"
        assert updated.name == "Acme GmbH"
