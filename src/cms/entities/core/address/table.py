"""Address database table model."""

from sqlmodel import Field

from src.cms.entities.core.owner import OwnedEntityTable


class AddressTable(OwnedEntityTable, table=True):
    """Database persistence model for addresses."""

    __tablename__ = "addresses"

    street: str = Field(max_length=200)
    house_nr: str | None = Field(default=None, max_length=20)
    city: str = Field(max_length=100, index=True)
    state: str | None = Field(default=None, max_length=100)
    country: str = Field(max_length=100)
    postal_code: str = Field(max_length=20)
    region: str | None = Field(default=None, max_length=100)
    district: str | None = Field(default=None, max_length=100)
    address_type: str | None = Field(default=None, max_length=50, index=True)
    notes: str | None = Field(default=None, max_length=500)
