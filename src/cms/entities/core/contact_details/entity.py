"""Entity: ContactDetails."""

from typing import Any

from pydantic import Field

from src.cms.entities.core.owner import OwnedEntity


class ContactDetails(OwnedEntity):
    """Phones, e-mails and social handles owned by a user, company or location."""

    primary_phone: str | None = Field(default=None, description="Primary phone")
    secondary_phone: str | None = Field(default=None, description="Secondary phone")
    mobile: str | None = Field(default=None, description="Mobile phone")
    fax: str | None = Field(default=None, description="Fax number")
    email: str | None = Field(default=None, description="Primary e-mail")
    secondary_email: str | None = Field(default=None, description="Secondary e-mail")
    website: str | None = Field(default=None, description="Website URL")
    linkedin_profile: str | None = Field(default=None)
    twitter_profile: str | None = Field(default=None)
    facebook_profile: str | None = Field(default=None)
    instagram_profile: str | None = Field(default=None)
    whatsapp_number: str | None = Field(default=None)
    telegram_handle: str | None = Field(default=None)
    additional_contacts: dict[str, Any] = Field(
        default_factory=dict, description="Arbitrary extra channels"
    )
    contact_type: str | None = Field(
        default=None, description="Free-form kind, e.g. Support or Sales"
    )

    @property
    def phones(self) -> list[str]:
        return [
            phone
            for phone in (self.primary_phone, self.secondary_phone, self.mobile)
            if phone
        ]
