"""Unit tests for PageService."""

import pytest

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError, HierarchyError
from src.cms.core.services import PageCreate, PageUpdate
from src.cms.entities.content.page import PageStatus
from src.cms.runtime.context import with_user


def _create(service, name, parent=None, **fields):
    return service.create_page(
        PageCreate(
            name=name,
            title=fields.pop("title", name.title()),
            parent_page_id=parent.id if parent else None,
            **fields,
        )
    )


class TestPublishing:
    """Status transitions."""

    def test_new_page_is_draft(self, page_service):
        """Should create pages as drafts."""
        page = _create(page_service, "about")

        assert page.status is PageStatus.DRAFT
        assert page.slug == "about"

    def test_publish_stamps_time_and_user(self, page_service):
        """Should record when and by whom the page was published."""
        page = _create(page_service, "news")

        with with_user(5):
            published = page_service.publish_page(page.id)

        assert published.is_published
        assert published.published_on is not None
        assert published.published_by == 5
        assert page_service.get_published_page("news").id == page.id

    def test_unpublished_page_is_not_served(self, page_service):
        """Should hide drafts from published lookups."""
        page = _create(page_service, "draft")
        page_service.publish_page(page.id)
        page_service.unpublish_page(page.id)

        with pytest.raises(EntityNotFoundError):
            page_service.get_published_page("draft")
        assert page_service.get_published_pages() == []

    def test_archive(self, page_service):
        """Should move a page to the archived status."""
        page = _create(page_service, "old")

        assert page_service.archive_page(page.id).status is PageStatus.ARCHIVED


class TestDuplicate:
    """Copying pages."""

    def test_duplicate_gets_copy_slug_and_draft_status(self, page_service):
        """Should append -copy to the slug and reset publishing."""
        source = _create(page_service, "pricing", description="Plans")
        page_service.publish_page(source.id)

        copy = page_service.duplicate_page(source.id)

        assert copy.id != source.id
        assert copy.slug == "pricing-copy"
        assert copy.name == "pricing (Copy)"
        assert copy.description == "Plans"
        assert copy.status is PageStatus.DRAFT
        assert copy.published_on is None

    def test_repeated_duplicates_get_numbered_slugs(self, page_service):
        """Should number further copies of the same page."""
        source = _create(page_service, "faq")

        first = page_service.duplicate_page(source.id)
        second = page_service.duplicate_page(source.id, new_name="FAQ again")

        assert first.slug == "faq-copy"
        assert second.slug == "faq-copy-1"
        assert second.name == "FAQ again"

    def test_duplicate_skips_slug_of_deleted_copy(self, page_service):
        """Should not reuse the slug of a copy that was soft deleted."""
        source = _create(page_service, "terms")
        page_service.delete_page(page_service.duplicate_page(source.id).id)

        assert page_service.duplicate_page(source.id).slug == "terms-copy-1"

    def test_slug_of_deleted_page_stays_taken(self, page_service):
        """Should reject a slug still held by a soft-deleted page."""
        page_service.delete_page(_create(page_service, "about").id)

        with pytest.raises(EntityValidationError, match="already exists"):
            _create(page_service, "about")


class TestHierarchy:
    """Parent and child pages."""

    def test_hierarchy_nests_children(self, page_service):
        """Should attach child pages to their parent."""
        parent = _create(page_service, "company")
        child = _create(page_service, "team", parent=parent)

        roots = page_service.get_page_hierarchy()

        assert [page.id for page in roots] == [parent.id]
        assert [page.id for page in roots[0].child_pages] == [child.id]

    def test_delete_with_children_is_rejected(self, page_service):
        """Should refuse to delete a page with live child pages."""
        parent = _create(page_service, "docs")
        _create(page_service, "install", parent=parent)

        with pytest.raises(EntityValidationError, match="child pages"):
            page_service.delete_page(parent.id)

    def test_cannot_move_under_own_child(self, page_service):
        """Should detect cycles when re-parenting."""
        parent = _create(page_service, "a")
        child = _create(page_service, "b", parent=parent)

        with pytest.raises(HierarchyError):
            page_service.update_page(parent.id, PageUpdate(parent_page_id=child.id))

    def test_duplicate_slug_is_rejected(self, page_service):
        """Should enforce unique slugs across pages."""
        _create(page_service, "contact")

        with pytest.raises(EntityValidationError, match="already exists"):
            _create(page_service, "Contact")

    def test_delete_and_restore(self, page_service):
        """Should soft delete and restore a leaf page."""
        page = _create(page_service, "temp")

        assert page_service.delete_page(page.id) is True
        with pytest.raises(EntityNotFoundError):
            page_service.get_page(page.id)
        assert page_service.restore_page(page.id) is True
        assert page_service.get_page(page.id).slug == "temp"


class TestVersions:
    """Snapshots of page content and restoring them."""

    def test_versions_are_numbered_from_one(self, page_service):
        """Should number versions per page and list the newest first."""
        page = _create(page_service, "pricing")
        other = _create(page_service, "blog")

        page_service.create_page_version(page.id, "first")
        page_service.create_page_version(page.id)
        page_service.create_page_version(other.id)

        versions = page_service.get_page_versions(page.id)
        assert [version.version_number for version in versions] == [2, 1]
        assert versions[1].change_notes == "first"
        assert [v.version_number for v in page_service.get_page_versions(other.id)] == [1]

    def test_snapshot_holds_page_content(self, page_service):
        """Should capture the page fields as JSON."""
        page = _create(page_service, "pricing", title="Our Prices", priority=3)

        snapshot = page_service.create_page_version(page.id).snapshot

        assert snapshot["title"] == "Our Prices"
        assert snapshot["slug"] == "pricing"
        assert snapshot["priority"] == 3
        assert snapshot["status"] == "Draft"
        assert "published_on" not in snapshot

    def test_restore_brings_back_content(self, page_service):
        """Should restore content fields but keep slug and status."""
        page = _create(page_service, "pricing", title="Old title", description="old")
        version = page_service.create_page_version(page.id)
        page_service.update_page(
            page.id, PageUpdate(title="New title", description="new", slug="prices")
        )
        page_service.publish_page(page.id)

        restored = page_service.restore_page_version(page.id, version.id)

        assert restored.title == "Old title"
        assert restored.description == "old"
        assert restored.slug == "prices"
        assert restored.status is PageStatus.PUBLISHED
        assert page_service.get_page(page.id).title == "Old title"

    def test_restore_saves_a_backup_first(self, page_service):
        """Should snapshot the current content before restoring."""
        page = _create(page_service, "pricing", title="Old title")
        version = page_service.create_page_version(page.id)
        page_service.update_page(page.id, PageUpdate(title="New title"))

        page_service.restore_page_version(page.id, version.id)

        latest = page_service.get_page_versions(page.id)[0]
        assert latest.version_number == 2
        assert latest.change_notes == "Backup before restoring version 1"
        assert latest.snapshot["title"] == "New title"

    def test_restore_version_of_other_page(self, page_service):
        """Should reject a version that belongs to a different page."""
        page = _create(page_service, "pricing")
        other = _create(page_service, "blog")
        version = page_service.create_page_version(other.id)

        with pytest.raises(EntityNotFoundError, match="Page version"):
            page_service.restore_page_version(page.id, version.id)
        assert page_service.get_page_versions(page.id) == []

    def test_version_of_missing_page(self, page_service):
        """Should refuse to version a page that does not exist."""
        with pytest.raises(EntityNotFoundError):
            page_service.create_page_version(999)
        with pytest.raises(EntityValidationError, match="greater than 0"):
            page_service.restore_page_version(1, 0)

    def test_change_notes_length(self, page_service):
        """Should reject change notes over 1000 characters."""
        page = _create(page_service, "pricing")

        with pytest.raises(EntityValidationError, match="1000"):
            page_service.create_page_version(page.id, "x" * 1001)
