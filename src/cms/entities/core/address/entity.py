"""Entity: Address."""

from pydantic import Field

from src.cms.entities.core.owner import OwnedEntity


class Address(OwnedEntity):
    """Postal address owned by a user, company or location."""

    street: str = Field(description="Street name")
    house_nr: str | None = Field(default=None, description="House number")
    city: str = Field(description="City")
    state: str | None = Field(default=None, description="State or province")
    country: str = Field(description="Country")
    postal_code: str = Field(description="Postal code")
    region: str | None = Field(default=None, description="Region")
    district: str | None = Field(default=None, description="District")
    address_type: str | None = Field(
        default=None, description="Free-form kind, e.g. Billing or Shipping"
    )
    notes: str | None = Field(default=None, description="Delivery notes")

    @property
    def single_line(self) -> str:
        street = " ".join(part for part in (self.street, self.house_nr) if part)
        locality = " ".join(part for part in (self.postal_code, self.city) if part)
        return ", ".join(part for part in (street, locality, self.state, self.country) if part)
