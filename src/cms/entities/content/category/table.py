"""Category database table model."""

from typing import Any

from sqlalchemy import JSON
from sqlmodel import Field

from src.cms.entities.core._base import EntityTable


class CategoryTable(EntityTable, table=True):
    __tablename__ = "categories"

    name: str = Field(max_length=200, index=True)
    slug: str = Field(max_length=200, unique=True, index=True)
    description: str | None = Field(default=None, max_length=4000)
    short_description: str | None = Field(default=None, max_length=500)
    parent_category_id: int | None = Field(
        default=None, foreign_key="categories.id", index=True
    )
    is_active: bool = Field(default=True)
    is_visible: bool = Field(default=True)
    sort_order: int = Field(default=0)
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    custom_fields: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    featured_image_url: str | None = Field(default=None, max_length=500)
