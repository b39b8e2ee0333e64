"""User domain entity."""

from datetime import date, datetime
from enum import Enum

from pydantic import Field

from src.cms.entities.core._base import Entity
from src.cms.entities.core.address.entity import Address
from src.cms.entities.core.contact_details.entity import ContactDetails


class UserRole(str, Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"
    DEV = "Dev"


class User(Entity):
    """A person who can sign in to the CMS.

    ``addresses`` and ``contact_details`` are only populated by
    ``UserRepository.get_with_addresses_and_contacts``.
    """

    email: str = Field(description="Login e-mail, unique")
    username: str = Field(description="Login name, unique")
    password_hash: str | None = Field(default=None, repr=False)
    first_name: str | None = Field(default=None, description="Given name")
    last_name: str | None = Field(default=None, description="Family name")
    role: UserRole = Field(default=UserRole.CUSTOMER)

    is_active: bool = Field(default=True)
    is_locked: bool = Field(default=False)
    last_login_at: datetime | None = Field(default=None)
    failed_login_attempts: int = Field(default=0, ge=0)
    lockout_end: datetime | None = Field(default=None)

    picture_file_id: int | None = Field(default=None, description="Avatar file")
    date_of_birth: date | None = Field(default=None)
    gender: str | None = Field(default=None)
    external_id: str | None = Field(default=None, description="Identity provider subject")
    is_external_user: bool = Field(default=False)

    email_verified_at: datetime | None = Field(default=None)
    email_verification_token: str | None = Field(default=None, repr=False)
    password_changed_at: datetime | None = Field(default=None)

    addresses: list[Address] = Field(default_factory=list)
    contact_details: list[ContactDetails] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.username

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.DEV)

    @property
    def is_email_verified(self) -> bool:
        return self.email_verified_at is not None
