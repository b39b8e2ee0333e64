"""Unit tests for the shared soft-delete repository behaviour."""

import pytest

from src.cms.core.exceptions import EntityValidationError
from src.cms.entities.content.category import Category, CategoryRepository, CategoryTable
from src.cms.runtime.context import with_user


def _category(name: str, **fields) -> Category:
    return Category(name=name, slug=name.lower().replace(" ", "-"), **fields)


@pytest.fixture
def repository(session) -> CategoryRepository:
    return CategoryRepository(session)


class TestRoundTrip:
    """Adding, saving and reading back a record."""

    def test_add_save_and_get_returns_matching_fields(self, repository):
        """Should persist every field and stamp the audit timestamps."""
        created = repository.add(_category("Shoes", description="Footwear", sort_order=3))
        repository.save_changes()

        loaded = repository.get_by_id(created.id)

        assert loaded is not None
        assert loaded.name == "Shoes"
        assert loaded.slug == "shoes"
        assert loaded.description == "Footwear"
        assert loaded.sort_order == 3
        assert loaded.created_at is not None
        assert loaded.updated_at is not None
        assert loaded.is_deleted is False

    def test_add_stamps_acting_user(self, repository):
        """Should record the user the block runs on behalf of."""
        with with_user(42):
            created = repository.add(_category("Hats"))
            repository.save_changes()

        assert created.created_by_user_id == 42
        assert created.updated_by_user_id == 42

    def test_update_returns_none_for_missing_row(self, repository):
        """Should return None when the stored row does not exist."""
        ghost = _category("Ghost")
        ghost.id = 999

        assert repository.update(ghost) is None

    def test_update_keeps_creation_audit(self, repository):
        """Should never overwrite created_at on update."""
        created = repository.add(_category("Bags"))
        repository.save_changes()
        original_created_at = repository.get_by_id(created.id).created_at

        created.name = "Handbags"
        updated = repository.update(created)
        repository.save_changes()

        assert updated.name == "Handbags"
        assert repository.get_by_id(created.id).created_at == original_created_at


class TestSoftDelete:
    """Soft delete and restore semantics."""

    def test_soft_deleted_record_is_hidden_from_default_reads(self, repository):
        """Should hide the record from get_by_id, get_all and count."""
        kept = repository.add(_category("Kept"))
        gone = repository.add(_category("Gone"))
        repository.save_changes()

        assert repository.soft_delete(gone.id) is True

        assert repository.get_by_id(gone.id) is None
        assert [category.id for category in repository.get_all()] == [kept.id]
        assert repository.count() == 1
        assert repository.count_include_deleted() == 2
        assert repository.exists(gone.id) is False

    def test_soft_deleted_record_is_visible_including_deleted(self, repository):
        """Should return the record with the soft-delete triple set."""
        created = repository.add(_category("Archived"))
        repository.save_changes()

        with with_user(7):
            repository.soft_delete(created.id)

        deleted = repository.get_by_id_include_deleted(created.id)
        assert deleted is not None
        assert deleted.is_deleted is True
        assert deleted.deleted_at is not None
        assert deleted.deleted_by_user_id == 7

    def test_soft_delete_missing_record_returns_false(self, repository):
        """Should report False instead of raising for unknown ids."""
        assert repository.soft_delete(12345) is False

    def test_soft_delete_twice_returns_false(self, repository):
        """Should treat an already deleted record as not found."""
        created = repository.add(_category("Twice"))
        repository.save_changes()

        assert repository.soft_delete(created.id) is True
        assert repository.soft_delete(created.id) is False

    def test_restore_clears_soft_delete_fields(self, repository):
        """Should clear is_deleted, deleted_at and deleted_by_user_id."""
        created = repository.add(_category("Back"))
        repository.save_changes()
        repository.soft_delete(created.id, deleted_by_user_id=3)

        assert repository.restore(created.id) is True

        restored = repository.get_by_id(created.id)
        assert restored is not None
        assert restored.is_deleted is False
        assert restored.deleted_at is None
        assert restored.deleted_by_user_id is None

    def test_restore_live_record_returns_false(self, repository):
        """Should refuse to restore a record that is not deleted."""
        created = repository.add(_category("Alive"))
        repository.save_changes()

        assert repository.restore(created.id) is False

    def test_soft_delete_range_counts_only_live_records(self, repository):
        """Should skip missing ids and return the number deleted."""
        first = repository.add(_category("One"))
        second = repository.add(_category("Two"))
        repository.save_changes()

        assert repository.soft_delete_range([first.id, second.id, 999]) == 2
        assert repository.count() == 0

    def test_batch_soft_delete_and_restore(self, repository):
        """Should flip every matching row in one statement."""
        repository.add(_category("Visible A", is_visible=True))
        repository.add(_category("Visible B", is_visible=True))
        hidden = repository.add(_category("Hidden", is_visible=False))
        repository.save_changes()

        assert repository.batch_soft_delete(CategoryTable.is_visible == True) is True  # noqa: E712
        assert [category.id for category in repository.get_all()] == [hidden.id]

        assert repository.batch_restore(CategoryTable.is_visible == True) is True  # noqa: E712
        assert repository.count() == 3

    def test_batch_soft_delete_requires_criteria(self, repository):
        """Should refuse to soft delete a whole table."""
        with pytest.raises(EntityValidationError):
            repository.batch_soft_delete()


class TestPagination:
    """Page bounds and ordering."""

    @pytest.mark.parametrize(
        ("page", "page_size"),
        [(0, 10), (1, 0), (1, 1001), (-1, 10)],
    )
    def test_get_paged_rejects_invalid_bounds(self, repository, page, page_size):
        """Should raise EntityValidationError outside 1..1000."""
        with pytest.raises(EntityValidationError):
            repository.get_paged(page, page_size)

    def test_get_paged_accepts_maximum_page_size(self, repository):
        """Should accept page=1 with page_size=1000."""
        assert repository.get_paged(1, 1000) == []

    def test_get_paged_orders_by_id_and_skips_deleted(self, repository):
        """Should page live records in id order."""
        created = [repository.add(_category(f"Item {index}")) for index in range(5)]
        repository.save_changes()
        repository.soft_delete(created[1].id)

        first_page = repository.get_paged(1, 2)
        second_page = repository.get_paged(2, 2)

        assert [c.id for c in first_page] == [created[0].id, created[2].id]
        assert [c.id for c in second_page] == [created[3].id, created[4].id]

    def test_get_paged_result_reports_totals(self, repository):
        """Should report total count and page metadata."""
        for index in range(7):
            repository.add(_category(f"Row {index}"))
        repository.save_changes()

        result = repository.get_paged_result(2, 3)

        assert result.total_count == 7
        assert result.total_pages == 3
        assert len(result.data) == 3
        assert result.has_previous_page is True
        assert result.has_next_page is True


class TestQueries:
    """find, any and the include-deleted twins."""

    def test_find_and_first_or_default(self, repository):
        """Should filter with column expressions."""
        repository.add(_category("Active", is_active=True))
        inactive = repository.add(_category("Inactive", is_active=False))
        repository.save_changes()

        found = repository.find(CategoryTable.is_active == False)  # noqa: E712
        first = repository.first_or_default(CategoryTable.slug == "inactive")

        assert [category.id for category in found] == [inactive.id]
        assert first is not None and first.id == inactive.id
        assert repository.first_or_default(CategoryTable.slug == "missing") is None

    def test_any_ignores_deleted_rows(self, repository):
        """Should not see soft-deleted rows unless asked."""
        created = repository.add(_category("Lonely"))
        repository.save_changes()
        repository.soft_delete(created.id)

        assert repository.any(CategoryTable.slug == "lonely") is False
        assert len(repository.find_include_deleted(CategoryTable.slug == "lonely")) == 1

    def test_get_by_ids_skips_unknown(self, repository):
        """Should return only the live records among the given ids."""
        first = repository.add(_category("First"))
        second = repository.add(_category("Second"))
        repository.save_changes()

        assert [c.id for c in repository.get_by_ids([second.id, 404, first.id])] == [first.id, second.id]
        assert repository.get_by_ids([]) == []
