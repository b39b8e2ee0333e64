"""Location domain entity."""

from pydantic import Field

from src.cms.entities.core._base import Entity
from src.cms.entities.core.address.entity import Address
from src.cms.entities.core.contact_details.entity import ContactDetails


class Location(Entity):
    """A branch, warehouse or office belonging to a company."""

    company_id: int = Field(description="Owning company")
    name: str = Field(description="Display name")
    description: str | None = Field(default=None)
    location_code: str | None = Field(default=None, description="Short unique code")
    location_type: str = Field(default="Branch")
    is_main_location: bool = Field(default=False)
    is_active: bool = Field(default=True)

    addresses: list[Address] = Field(default_factory=list)
    contact_details: list[ContactDetails] = Field(default_factory=list)
