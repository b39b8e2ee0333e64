"""Location database table model."""

from sqlmodel import Field

from src.cms.entities.core._base import EntityTable


class LocationTable(EntityTable, table=True):
    __tablename__ = "locations"

    company_id: int = Field(foreign_key="companies.id", index=True)
    name: str = Field(max_length=200, index=True)
    description: str | None = Field(default=None, max_length=2000)
    location_code: str | None = Field(default=None, max_length=50, index=True)
    location_type: str = Field(default="Branch", max_length=50)
    is_main_location: bool = Field(default=False)
    is_active: bool = Field(default=True, index=True)
