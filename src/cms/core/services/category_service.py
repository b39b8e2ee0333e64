"""Category use cases: CRUD, moves and ordering within the category tree."""

from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityValidationError, HierarchyError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.models.search import CategorySearch
from src.cms.core.services.base import (
    EntityService,
    apply_changes,
    require_id,
    require_text,
    slugify,
)
from src.cms.entities.content.category import Category


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200, description="Derived from name when omitted")
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=500)
    parent_category_id: int | None = None
    is_active: bool = True
    is_visible: bool = True
    sort_order: int = 0
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    featured_image_url: str | None = Field(default=None, max_length=500)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=500)
    parent_category_id: int | None = None
    is_active: bool | None = None
    is_visible: bool | None = None
    sort_order: int | None = None
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    custom_fields: dict[str, Any] | None = None
    featured_image_url: str | None = Field(default=None, max_length=500)


class CategoryOrder(BaseModel):
    category_id: int = Field(gt=0)
    sort_order: int


class CategoryService(EntityService):
    entity_label = "Category"

    def get_category(self, category_id: int) -> Category:
        require_id(category_id, "Category")
        with self._logged("get", category_id=category_id):
            return self._found(self._uow.categories.get_by_id(category_id), category_id)

    def get_category_by_slug(self, slug: str) -> Category:
        slug = require_text(slug, "Slug")
        return self._found(self._uow.categories.get_by_slug(slug), slug)

    def get_categories(self, page: int, page_size: int) -> PagedResult[Category]:
        with self._logged("list"):
            return self._uow.categories.get_paged_result(page, page_size)

    def get_category_tree(self) -> list[Category]:
        with self._logged("build tree of"):
            return self._uow.categories.get_category_tree()

    def get_root_categories(self) -> list[Category]:
        return self._uow.categories.get_root_categories()

    def search_categories(self, filters: CategorySearch) -> PagedResult[Category]:
        with self._logged("search"):
            return self._uow.categories.search_categories_paged(filters)

    def is_slug_available(self, slug: str, exclude_category_id: int | None = None) -> bool:
        return not self._uow.categories.slug_exists(require_text(slug, "Slug"), exclude_category_id)

    def _check_slug(self, slug: str, exclude_category_id: int | None = None) -> None:
        if self._uow.categories.slug_exists(slug, exclude_category_id):
            raise EntityValidationError(f"A category with slug '{slug}' already exists")

    def _check_parent(self, category_id: int | None, parent_category_id: int) -> None:
        """The parent must exist and, for an existing category, must not lie in its subtree."""
        if not self._uow.categories.exists(parent_category_id):
            raise EntityValidationError(f"Parent category {parent_category_id} not found")
        if category_id is None:
            return
        if parent_category_id == category_id:
            raise HierarchyError("A category cannot be its own parent")
        if self._uow.categories.is_descendant_of(parent_category_id, category_id):
            raise HierarchyError("A category cannot be moved under one of its descendants")

    def create_category(self, data: CategoryCreate) -> Category:
        name = require_text(data.name, "Category name")
        slug = slugify(data.slug or name)
        self._check_slug(slug)
        if data.parent_category_id is not None:
            self._check_parent(None, data.parent_category_id)

        category = Category(**{**data.model_dump(), "name": name, "slug": slug})
        with self._logged("create", slug=slug):
            created = self._uow.categories.add(category)
            self._uow.save_changes()
        logger.info("Category {} created with slug {}", created.id, slug)
        return created

    def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        require_id(category_id, "Category")
        category = self._found(self._uow.categories.get_by_id(category_id), category_id)
        if data.slug is not None:
            data.slug = slugify(data.slug)
            self._check_slug(data.slug, category_id)
        if data.parent_category_id is not None and data.parent_category_id != category.parent_category_id:
            self._check_parent(category_id, data.parent_category_id)
        if data.custom_fields is None and "custom_fields" in data.model_fields_set:
            data.custom_fields = {}

        with self._logged("update", category_id=category_id):
            updated = self._uow.categories.update(apply_changes(category, data))
            self._uow.save_changes()
        logger.info("Category {} updated", category_id)
        return self._found(updated, category_id)

    def move_category(self, category_id: int, new_parent_id: int | None) -> Category:
        """Re-parent a category; None moves it to the root."""
        require_id(category_id, "Category")
        category = self._found(self._uow.categories.get_by_id(category_id), category_id)
        if new_parent_id is not None:
            self._check_parent(category_id, new_parent_id)

        category.parent_category_id = new_parent_id
        with self._logged("move", category_id=category_id, new_parent_id=new_parent_id):
            moved = self._uow.categories.update(category)
            self._uow.save_changes()
        logger.info("Category {} moved under {}", category_id, new_parent_id)
        return self._found(moved, category_id)

    def delete_category(self, category_id: int) -> bool:
        """Soft delete a category that has no products and no live subcategories."""
        require_id(category_id, "Category")
        if not self._uow.categories.exists(category_id):
            logger.warning("Failed to delete category {} - not found", category_id)
            return False
        if not self._uow.categories.can_delete(category_id):
            raise EntityValidationError(
                "Cannot delete a category that has products or subcategories"
            )
        with self._logged("delete", category_id=category_id):
            return self._uow.categories.soft_delete(category_id)

    def restore_category(self, category_id: int) -> bool:
        require_id(category_id, "Category")
        with self._logged("restore", category_id=category_id):
            return self._uow.categories.restore(category_id)

    def reorder_categories(self, orders: list[CategoryOrder]) -> list[Category]:
        """Apply new sort orders atomically; unknown ids abort the whole batch."""

        def operation() -> list[Category]:
            reordered = []
            for order in orders:
                category = self._uow.categories.get_by_id(order.category_id)
                if category is None:
                    raise EntityValidationError(f"Category {order.category_id} not found")
                category.sort_order = order.sort_order
                reordered.append(self._uow.categories.update(category))
            return reordered

        with self._logged("reorder", count=len(orders)):
            return self._uow.execute_in_transaction(operation)
