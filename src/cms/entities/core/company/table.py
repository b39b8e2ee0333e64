"""Company database table model."""

from sqlmodel import Field

from src.cms.entities.core._base import EntityTable


class CompanyTable(EntityTable, table=True):
    __tablename__ = "companies"

    name: str = Field(max_length=200, index=True)
    description: str | None = Field(default=None, max_length=2000)
    logo: str | None = Field(default=None, max_length=500)
    favicon: str | None = Field(default=None, max_length=500)
    is_active: bool = Field(default=True, index=True)
    timezone: str = Field(default="UTC", max_length=64)
    currency: str = Field(default="USD", max_length=3)
    language: str = Field(default="en", max_length=10)
