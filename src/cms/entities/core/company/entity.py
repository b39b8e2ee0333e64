"""Company domain entity."""

from pydantic import Field

from src.cms.entities.core._base import Entity
from src.cms.entities.core.address.entity import Address
from src.cms.entities.core.contact_details.entity import ContactDetails
from src.cms.entities.core.location.entity import Location


class Company(Entity):
    """The organisation operating the site.

    ``locations``, ``addresses`` and ``contact_details`` are filled in by
    ``CompanyRepository.get_company_with_details`` only.
    """

    name: str = Field(description="Company name")
    description: str | None = Field(default=None)
    logo: str | None = Field(default=None, description="Logo URL")
    favicon: str | None = Field(default=None, description="Favicon URL")
    is_active: bool = Field(default=True)
    timezone: str = Field(default="UTC", description="IANA time zone")
    currency: str = Field(default="USD", description="ISO 4217 code")
    language: str = Field(default="en", description="Default content language")

    locations: list[Location] = Field(default_factory=list)
    addresses: list[Address] = Field(default_factory=list)
    contact_details: list[ContactDetails] = Field(default_factory=list)
