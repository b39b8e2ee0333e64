"""Page domain entity."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from src.cms.entities.core._base import Entity


class PageStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    ARCHIVED = "Archived"
    SCHEDULED = "Scheduled"


class Page(Entity):
    """A CMS page. Pages form a tree through ``parent_page_id``."""

    name: str = Field(description="Internal name")
    title: str = Field(description="Rendered title")
    slug: str = Field(description="URL segment, unique")
    description: str | None = Field(default=None)
    meta_title: str | None = Field(default=None)
    meta_description: str | None = Field(default=None)
    meta_keywords: str | None = Field(default=None)
    template: str | None = Field(default=None, description="Rendering template name")
    priority: int = Field(default=0, description="Lower sorts first")
    status: PageStatus = Field(default=PageStatus.DRAFT)
    parent_page_id: int | None = Field(default=None)
    requires_login: bool = Field(default=False)
    admin_only: bool = Field(default=False)
    published_on: datetime | None = Field(default=None)
    published_by: int | None = Field(default=None, description="Publishing user id")

    child_pages: list["Page"] = Field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.status is PageStatus.PUBLISHED
