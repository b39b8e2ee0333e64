"""PageVersion database table model."""

import sqlalchemy as sa
from sqlmodel import Field

from src.cms.entities.core._base import EntityTable


class PageVersionTable(EntityTable, table=True):
    __tablename__ = "page_versions"
    __table_args__ = (sa.UniqueConstraint("page_id", "version_number"),)

    page_id: int = Field(foreign_key="pages.id", index=True)
    version_number: int
    data: str = Field(sa_type=sa.Text)
    change_notes: str | None = Field(default=None, max_length=1000)
