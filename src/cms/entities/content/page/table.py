"""Page database table model."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from src.cms.entities.core._base import EntityTable

from .entity import PageStatus


class PageTable(EntityTable, table=True):
    __tablename__ = "pages"

    name: str = Field(max_length=200)
    title: str = Field(max_length=300)
    slug: str = Field(max_length=200, unique=True, index=True)
    description: str | None = Field(default=None, max_length=2000)
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    template: str | None = Field(default=None, max_length=100)
    priority: int = Field(default=0)
    status: PageStatus = Field(default=PageStatus.DRAFT, index=True)
    parent_page_id: int | None = Field(default=None, foreign_key="pages.id", index=True)
    requires_login: bool = Field(default=False)
    admin_only: bool = Field(default=False)
    published_on: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))
    published_by: int | None = Field(default=None)
