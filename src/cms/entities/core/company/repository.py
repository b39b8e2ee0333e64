from src.cms.entities.core.address.repository import AddressRepository
from src.cms.entities.core.contact_details.repository import ContactDetailsRepository
from src.cms.entities.core.location.repository import LocationRepository
from src.cms.entities.core.owner import OwnerType
from src.cms.entities.core.repository import SoftDeleteRepository

from .entity import Company
from .table import CompanyTable


class CompanyRepository(SoftDeleteRepository[Company, CompanyTable]):
    """Data-access layer for companies."""

    entity_model = Company
    table_model = CompanyTable

    def get_active_company(self) -> Company | None:
        return self.first_or_default(CompanyTable.is_active == True)  # noqa: E712

    def get_company_with_details(self, company_id: int | None = None) -> Company | None:
        """Load a company with its locations, addresses and contact details.

        Without ``company_id`` the first active company is returned, which is
        the usual case for a single-tenant site.
        """
        company = self.get_by_id(company_id) if company_id is not None else self.get_active_company()
        if company is None or company.id is None:
            return None

        company.locations = LocationRepository(self._session).get_locations_by_company(company.id)
        company.addresses = AddressRepository(self._session).get_addresses_by_entity(
            company.id, OwnerType.COMPANY
        )
        company.contact_details = ContactDetailsRepository(
            self._session
        ).get_contact_details_by_entity(company.id, OwnerType.COMPANY)
        return company
