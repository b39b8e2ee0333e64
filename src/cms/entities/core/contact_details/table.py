"""ContactDetails database table model."""

from typing import Any

from sqlalchemy import JSON
from sqlmodel import Field

from src.cms.entities.core.owner import OwnedEntityTable


class ContactDetailsTable(OwnedEntityTable, table=True):
    """Database persistence model for contact details."""

    __tablename__ = "contact_details"

    primary_phone: str | None = Field(default=None, max_length=30, index=True)
    secondary_phone: str | None = Field(default=None, max_length=30)
    mobile: str | None = Field(default=None, max_length=30)
    fax: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=256, index=True)
    secondary_email: str | None = Field(default=None, max_length=256)
    website: str | None = Field(default=None, max_length=500)
    linkedin_profile: str | None = Field(default=None, max_length=500)
    twitter_profile: str | None = Field(default=None, max_length=500)
    facebook_profile: str | None = Field(default=None, max_length=500)
    instagram_profile: str | None = Field(default=None, max_length=500)
    whatsapp_number: str | None = Field(default=None, max_length=30)
    telegram_handle: str | None = Field(default=None, max_length=100)
    additional_contacts: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    contact_type: str | None = Field(default=None, max_length=50, index=True)
