"""Page use cases: CRUD, publishing, duplication and versioning."""

import json

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError, HierarchyError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.services.base import (
    EntityService,
    apply_changes,
    require_id,
    require_text,
    slugify,
)
from src.cms.entities.content.page import Page, PageStatus
from src.cms.entities.content.page_version import PageVersion
from src.cms.entities.core._base import utc_now
from src.cms.runtime.context import get_current_user_id


# Page fields captured by a version snapshot.
VERSIONED_FIELDS = frozenset(
    {
        "name",
        "title",
        "slug",
        "description",
        "meta_title",
        "meta_description",
        "meta_keywords",
        "status",
        "template",
        "priority",
        "parent_page_id",
        "requires_login",
        "admin_only",
    }
)

# Restoring never changes the URL, publication state or position in the tree.
RESTORED_FIELDS = VERSIONED_FIELDS - {"slug", "status", "parent_page_id"}

MAX_CHANGE_NOTES = 1000


class PageCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    title: str = Field(min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200, description="Derived from name when omitted")
    description: str | None = Field(default=None, max_length=500)
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    template: str | None = Field(default=None, max_length=100)
    priority: int = 0
    parent_page_id: int | None = None
    requires_login: bool = False
    admin_only: bool = False


class PageUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=500)
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    meta_keywords: str | None = Field(default=None, max_length=500)
    template: str | None = Field(default=None, max_length=100)
    priority: int | None = None
    parent_page_id: int | None = None
    requires_login: bool | None = None
    admin_only: bool | None = None


class PageService(EntityService):
    entity_label = "Page"

    def get_page(self, page_id: int) -> Page:
        require_id(page_id, "Page")
        with self._logged("get", page_id=page_id):
            return self._found(self._uow.pages.get_by_id(page_id), page_id)

    def get_page_by_slug(self, slug: str) -> Page:
        slug = require_text(slug, "Slug")
        return self._found(self._uow.pages.get_by_slug(slug), slug)

    def get_published_page(self, slug: str) -> Page:
        slug = require_text(slug, "Slug")
        return self._found(self._uow.pages.get_published_by_slug(slug), slug)

    def get_pages(self, page: int, page_size: int) -> PagedResult[Page]:
        with self._logged("list"):
            return self._uow.pages.get_paged_result(page, page_size)

    def get_page_hierarchy(self) -> list[Page]:
        return self._uow.pages.get_page_hierarchy()

    def get_published_pages(self) -> list[Page]:
        return self._uow.pages.get_published_pages()

    def search_pages(self, term: str | None, page: int, page_size: int) -> PagedResult[Page]:
        with self._logged("search", term=term):
            return self._uow.pages.search_pages(term, page, page_size)

    def _check_slug(self, slug: str, exclude_page_id: int | None = None) -> None:
        if self._uow.pages.slug_exists(slug, exclude_page_id):
            raise EntityValidationError(f"A page with slug '{slug}' already exists")

    def _check_parent(self, page_id: int | None, parent_page_id: int) -> None:
        if not self._uow.pages.exists(parent_page_id):
            raise EntityValidationError(f"Parent page {parent_page_id} not found")
        # Walk up from the new parent; reaching the page itself means a cycle.
        seen: set[int] = set()
        current: int | None = parent_page_id
        while current is not None and current not in seen:
            if current == page_id:
                raise HierarchyError("A page cannot be moved under itself or its descendants")
            seen.add(current)
            parent = self._uow.pages.get_by_id_include_deleted(current)
            current = parent.parent_page_id if parent is not None else None

    def create_page(self, data: PageCreate) -> Page:
        name = require_text(data.name, "Page name")
        require_text(data.title, "Page title")
        slug = slugify(data.slug or name)
        self._check_slug(slug)
        if data.parent_page_id is not None:
            self._check_parent(None, data.parent_page_id)

        with self._logged("create", slug=slug):
            created = self._uow.pages.add(Page(**{**data.model_dump(), "name": name, "slug": slug}))
            self._uow.save_changes()
        logger.info("Page {} created with slug {}", created.id, slug)
        return created

    def update_page(self, page_id: int, data: PageUpdate) -> Page:
        page = self.get_page(page_id)
        if data.slug is not None:
            data.slug = slugify(data.slug)
            self._check_slug(data.slug, page_id)
        if data.parent_page_id is not None and data.parent_page_id != page.parent_page_id:
            self._check_parent(page_id, data.parent_page_id)

        with self._logged("update", page_id=page_id):
            updated = self._uow.pages.update(apply_changes(page, data))
            self._uow.save_changes()
        logger.info("Page {} updated", page_id)
        return self._found(updated, page_id)

    def _set_status(self, page: Page, status: PageStatus) -> Page:
        page.status = status
        updated = self._uow.pages.update(page)
        self._uow.save_changes()
        return self._found(updated, page.id)

    def publish_page(self, page_id: int) -> Page:
        """Mark a page published, stamping when and by whom."""
        page = self.get_page(page_id)
        page.published_on = utc_now()
        page.published_by = get_current_user_id()
        with self._logged("publish", page_id=page_id):
            published = self._set_status(page, PageStatus.PUBLISHED)
        logger.info("Page {} published by user {}", page_id, page.published_by)
        return published

    def unpublish_page(self, page_id: int) -> Page:
        page = self.get_page(page_id)
        with self._logged("unpublish", page_id=page_id):
            unpublished = self._set_status(page, PageStatus.DRAFT)
        logger.info("Page {} unpublished", page_id)
        return unpublished

    def archive_page(self, page_id: int) -> Page:
        page = self.get_page(page_id)
        with self._logged("archive", page_id=page_id):
            return self._set_status(page, PageStatus.ARCHIVED)

    def duplicate_page(self, page_id: int, new_name: str | None = None) -> Page:
        """Copy a page as a new draft with a unique ``-copy`` slug."""
        source = self.get_page(page_id)
        name = require_text(new_name, "Page name") if new_name else f"{source.name} (Copy)"

        base_slug = f"{source.slug}-copy"
        slug = base_slug
        suffix = 0
        while self._uow.pages.slug_exists(slug):
            suffix += 1
            slug = f"{base_slug}-{suffix}"

        copy = source.model_copy(
            update={
                "id": None,
                "name": name,
                "slug": slug,
                "status": PageStatus.DRAFT,
                "published_on": None,
                "published_by": None,
                "child_pages": [],
                "created_by_user_id": None,
                "updated_by_user_id": None,
            }
        )
        with self._logged("duplicate", page_id=page_id):
            created = self._uow.pages.add(copy)
            self._uow.save_changes()
        logger.info("Page {} duplicated as {}", page_id, created.id)
        return created

    def delete_page(self, page_id: int) -> bool:
        """Soft delete a page; pages with live child pages are rejected."""
        require_id(page_id, "Page")
        if not self._uow.pages.exists(page_id):
            logger.warning("Failed to delete page {} - not found", page_id)
            return False
        if self._uow.pages.get_child_pages(page_id):
            raise EntityValidationError("Cannot delete a page that has child pages")
        with self._logged("delete", page_id=page_id):
            return self._uow.pages.soft_delete(page_id)

    def restore_page(self, page_id: int) -> bool:
        require_id(page_id, "Page")
        with self._logged("restore", page_id=page_id):
            return self._uow.pages.restore(page_id)

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def _snapshot(self, page: Page, change_notes: str | None) -> PageVersion:
        version = PageVersion(
            page_id=page.id,
            version_number=self._uow.page_versions.get_next_version_number(page.id),
            data=json.dumps(page.model_dump(mode="json", include=set(VERSIONED_FIELDS))),
            change_notes=change_notes,
        )
        created = self._uow.page_versions.add(version)
        self._uow.save_changes()
        return created

    def create_page_version(self, page_id: int, change_notes: str | None = None) -> PageVersion:
        """Snapshot the page's current content as its next version."""
        page = self.get_page(page_id)
        if change_notes is not None and len(change_notes) > MAX_CHANGE_NOTES:
            raise EntityValidationError(
                f"Change notes cannot exceed {MAX_CHANGE_NOTES} characters"
            )
        with self._logged("create version of", page_id=page_id):
            version = self._snapshot(page, change_notes)
        logger.info("Page {} saved as version {}", page_id, version.version_number)
        return version

    def get_page_versions(self, page_id: int) -> list[PageVersion]:
        """Versions of a page, newest first."""
        require_id(page_id, "Page")
        with self._logged("list versions of", page_id=page_id):
            return self._uow.page_versions.get_versions_by_page(page_id)

    def restore_page_version(self, page_id: int, version_id: int) -> Page:
        """Bring back a version's content, saving the current content as a backup version first.

        Slug, status and parent page stay as they are.
        """
        require_id(page_id, "Page")
        require_id(version_id, "Page version")
        page = self._uow.pages.get_by_id(page_id)
        version = self._uow.page_versions.get_page_version(page_id, version_id)
        if page is None or version is None:
            raise EntityNotFoundError("Page version", version_id)

        def operation() -> Page | None:
            self._snapshot(page, f"Backup before restoring version {version.version_number}")
            restored = {
                name: value for name, value in version.snapshot.items() if name in RESTORED_FIELDS
            }
            updated = self._uow.pages.update(apply_changes(page, restored))
            self._uow.save_changes()
            return updated

        with self._logged("restore version of", page_id=page_id, version_id=version_id):
            updated = self._found(self._uow.execute_in_transaction(operation), page_id)
        logger.info("Page {} restored to version {}", page_id, version.version_number)
        return updated
