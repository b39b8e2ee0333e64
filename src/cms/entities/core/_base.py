from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

# Audit and timestamp columns never participate in business equality.
AUDIT_FIELDS = frozenset(
    {
        "created_at",
        "updated_at",
        "created_by_user_id",
        "updated_by_user_id",
    }
)


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops the offset) as UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class Entity(BaseModel):
    """Base domain entity: identity, audit columns and the soft-delete triple."""

    id: int | None = PydanticField(
        default=None, description="Database identifier, assigned on insert"
    )

    created_at: datetime = PydanticField(default_factory=utc_now)
    updated_at: datetime = PydanticField(default_factory=utc_now)
    created_by_user_id: int | None = PydanticField(default=None)
    updated_by_user_id: int | None = PydanticField(default=None)

    is_deleted: bool = PydanticField(default=False)
    deleted_at: datetime | None = PydanticField(default=None)
    deleted_by_user_id: int | None = PydanticField(default=None)

    def __eq__(self, other: Any) -> bool:
        """Compare entities by business attributes, ignoring timestamps."""
        if type(other) is not type(self):
            return False
        return self.model_dump(exclude=set(AUDIT_FIELDS)) == other.model_dump(
            exclude=set(AUDIT_FIELDS)
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


class EntityTable(SQLModel, table=False):
    """Base persistence model shared by every CMS table."""

    id: int | None = Field(default=None, primary_key=True)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.func.now(),
            "onupdate": utc_now,
        },
    )
    created_by_user_id: int | None = Field(default=None)
    updated_by_user_id: int | None = Field(default=None)

    is_deleted: bool = Field(default=False, index=True)
    deleted_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))
    deleted_by_user_id: int | None = Field(default=None)
