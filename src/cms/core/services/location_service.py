"""Location and company use cases."""

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityValidationError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.models.search import LocationSearch
from src.cms.core.services.base import EntityService, apply_changes, require_id, require_text
from src.cms.entities.core.company import Company
from src.cms.entities.core.location import Location


class LocationCreate(BaseModel):
    company_id: int = Field(gt=0)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    location_code: str | None = Field(default=None, max_length=50)
    location_type: str = Field(default="Branch", max_length=50)
    is_main_location: bool = False
    is_active: bool = True


class LocationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    location_code: str | None = Field(default=None, max_length=50)
    location_type: str | None = Field(default=None, max_length=50)
    is_main_location: bool | None = None
    is_active: bool | None = None


class CompanyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    logo: str | None = Field(default=None, max_length=500)
    favicon: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None
    timezone: str | None = Field(default=None, max_length=100)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    language: str | None = Field(default=None, min_length=2, max_length=10)


class LocationService(EntityService):
    entity_label = "Location"

    def get_location(self, location_id: int) -> Location:
        require_id(location_id, "Location")
        with self._logged("get", location_id=location_id):
            return self._found(
                self._uow.locations.get_with_addresses_and_contacts(location_id), location_id
            )

    def get_locations_by_company(self, company_id: int) -> list[Location]:
        require_id(company_id, "Company")
        return self._uow.locations.get_locations_by_company(company_id)

    def get_main_location(self, company_id: int | None = None) -> Location | None:
        return self._uow.locations.get_main_location(company_id)

    def search_locations(self, filters: LocationSearch) -> PagedResult[Location]:
        with self._logged("search"):
            return self._uow.locations.search_locations(filters)

    def _check_code(self, location_code: str | None, exclude_location_id: int | None = None) -> None:
        if location_code and self._uow.locations.location_code_exists(location_code, exclude_location_id):
            raise EntityValidationError(f"A location with code '{location_code}' already exists")

    def _clear_main_location(self, company_id: int, keep_location_id: int) -> None:
        for location in self._uow.locations.get_locations_by_company(company_id):
            if location.is_main_location and location.id != keep_location_id:
                location.is_main_location = False
                self._uow.locations.update(location)

    def create_location(self, data: LocationCreate) -> Location:
        """Create a location; a new main location demotes the company's previous one."""
        name = require_text(data.name, "Location name")
        if not self._uow.companies.exists(data.company_id):
            raise EntityValidationError(f"Company with ID {data.company_id} not found")
        code = data.location_code.strip() if data.location_code else None
        self._check_code(code)

        def operation() -> Location:
            created = self._uow.locations.add(
                Location(**{**data.model_dump(), "name": name, "location_code": code})
            )
            if created.is_main_location:
                self._clear_main_location(data.company_id, created.id)
            return created

        with self._logged("create", company_id=data.company_id):
            created = self._uow.execute_in_transaction(operation)
        logger.info("Location {} created for company {}", created.id, data.company_id)
        return created

    def update_location(self, location_id: int, data: LocationUpdate) -> Location:
        require_id(location_id, "Location")
        location = self._found(self._uow.locations.get_by_id(location_id), location_id)
        if data.location_code:
            data.location_code = data.location_code.strip()
            self._check_code(data.location_code, location_id)
        updated_location = apply_changes(location, data)

        def operation() -> Location | None:
            updated = self._uow.locations.update(updated_location)
            if data.is_main_location:
                self._clear_main_location(location.company_id, location_id)
            return updated

        with self._logged("update", location_id=location_id):
            updated = self._uow.execute_in_transaction(operation)
        logger.info("Location {} updated", location_id)
        return self._found(updated, location_id)

    def set_main_location(self, location_id: int) -> Location:
        return self.update_location(location_id, LocationUpdate(is_main_location=True))

    def delete_location(self, location_id: int) -> bool:
        require_id(location_id, "Location")
        if not self._uow.locations.exists(location_id):
            logger.warning("Failed to delete location {} - not found", location_id)
            return False
        with self._logged("delete", location_id=location_id):
            return self._uow.locations.soft_delete(location_id)


class CompanyService(EntityService):
    entity_label = "Company"

    def get_company(self, company_id: int | None = None) -> Company:
        """A company with locations, addresses and contacts; the active one when no id is given."""
        if company_id is not None:
            require_id(company_id, "Company")
        with self._logged("get", company_id=company_id):
            company = self._uow.companies.get_company_with_details(company_id)
        return self._found(company, company_id if company_id is not None else "active")

    def update_company(self, company_id: int, data: CompanyUpdate) -> Company:
        require_id(company_id, "Company")
        company = self._found(self._uow.companies.get_by_id(company_id), company_id)
        if data.name is not None:
            data.name = require_text(data.name, "Company name")
        if data.currency is not None:
            data.currency = data.currency.upper()

        with self._logged("update", company_id=company_id):
            updated = self._uow.companies.update(apply_changes(company, data))
            self._uow.save_changes()
        logger.info("Company {} updated", company_id)
        return self.get_company(self._found(updated, company_id).id)
