"""Category domain entity."""

from typing import Any

from pydantic import Field

from src.cms.entities.core._base import Entity


class Category(Entity):
    """Product category. Categories nest through ``parent_category_id``."""

    name: str = Field(description="Display name")
    slug: str = Field(description="URL segment, unique")
    description: str | None = Field(default=None)
    short_description: str | None = Field(default=None)
    parent_category_id: int | None = Field(default=None)
    is_active: bool = Field(default=True)
    is_visible: bool = Field(default=True)
    sort_order: int = Field(default=0)
    meta_title: str | None = Field(default=None)
    meta_description: str | None = Field(default=None)
    meta_keywords: str | None = Field(default=None)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    featured_image_url: str | None = Field(default=None)

    sub_categories: list["Category"] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent_category_id is None
