"""User database table model."""

from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from src.cms.entities.core._base import EntityTable

from .entity import UserRole


class UserTable(EntityTable, table=True):
    """Database persistence model for users."""

    __tablename__ = "users"

    email: str = Field(max_length=256, unique=True, index=True)
    username: str = Field(max_length=100, unique=True, index=True)
    password_hash: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role: UserRole = Field(default=UserRole.CUSTOMER, index=True)

    is_active: bool = Field(default=True, index=True)
    is_locked: bool = Field(default=False)
    last_login_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))
    failed_login_attempts: int = Field(default=0)
    lockout_end: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))

    picture_file_id: int | None = Field(default=None)
    date_of_birth: date | None = Field(default=None)
    gender: str | None = Field(default=None, max_length=20)
    external_id: str | None = Field(default=None, max_length=255, index=True)
    is_external_user: bool = Field(default=False)

    email_verified_at: datetime | None = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
    email_verification_token: str | None = Field(default=None, max_length=255, index=True)
    password_changed_at: datetime | None = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
