"""Unit tests for FolderService and materialised folder paths."""

import pytest

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError, HierarchyError
from src.cms.core.services import FolderCreate


def _create(service, name, parent=None):
    return service.create_folder(
        FolderCreate(name=name, parent_folder_id=parent.id if parent else None)
    )


class TestFolderPaths:
    """Path generation on create."""

    def test_root_and_child_paths(self, folder_service):
        """Should join names from the root with '/'."""
        root = _create(folder_service, "media")
        child = _create(folder_service, "images", parent=root)

        assert root.path == "media"
        assert child.path == "media/images"
        assert folder_service.get_folder_by_path("media/images").id == child.id

    def test_duplicate_names_get_numeric_suffix(self, folder_service):
        """Should suffix _1, _2 when the path is taken."""
        first = _create(folder_service, "docs")
        second = _create(folder_service, "docs")
        third = _create(folder_service, "docs")

        assert [first.path, second.path, third.path] == ["docs", "docs_1", "docs_2"]
        assert second.name == "docs_1"

    def test_name_with_separator_is_rejected(self):
        """Should refuse names containing '/'."""
        with pytest.raises(ValueError):
            FolderCreate(name="a/b")

    def test_breadcrumbs_run_root_first(self, folder_service):
        """Should list ancestors from the root down to the folder."""
        root = _create(folder_service, "a")
        middle = _create(folder_service, "b", parent=root)
        leaf = _create(folder_service, "c", parent=middle)

        crumbs = folder_service.get_breadcrumbs(leaf.id)

        assert [folder.name for folder in crumbs] == ["a", "b", "c"]


class TestFolderMoves:
    """Moving folders and rewriting subtree paths."""

    def test_move_rewrites_subtree_paths(self, folder_service):
        """Should update the moved folder and every descendant."""
        source = _create(folder_service, "src")
        target = _create(folder_service, "archive")
        child = _create(folder_service, "photos", parent=source)
        grandchild = _create(folder_service, "2024", parent=child)

        moved = folder_service.move_folder(source.id, target.id)

        assert moved.path == "archive/src"
        assert moved.parent_folder_id == target.id
        assert folder_service.get_folder(child.id).path == "archive/src/photos"
        assert folder_service.get_folder(grandchild.id).path == "archive/src/photos/2024"

    def test_move_into_itself_is_rejected(self, folder_service):
        """Should raise HierarchyError when the target is the folder itself."""
        folder = _create(folder_service, "loop")

        with pytest.raises(HierarchyError):
            folder_service.move_folder(folder.id, folder.id)

    def test_move_into_descendant_is_rejected(self, folder_service):
        """Should raise HierarchyError and leave paths untouched."""
        top = _create(folder_service, "top")
        child = _create(folder_service, "child", parent=top)
        grandchild = _create(folder_service, "grandchild", parent=child)

        with pytest.raises(HierarchyError):
            folder_service.move_folder(top.id, grandchild.id)

        assert folder_service.get_folder(top.id).path == "top"
        assert folder_service.get_folder(grandchild.id).path == "top/child/grandchild"

    def test_move_to_missing_parent_raises_not_found(self, folder_service):
        """Should report the missing target folder."""
        folder = _create(folder_service, "lonely")

        with pytest.raises(EntityNotFoundError):
            folder_service.move_folder(folder.id, 999)

    def test_move_to_root(self, folder_service):
        """Should strip the parent prefix when moving to the root."""
        root = _create(folder_service, "outer")
        inner = _create(folder_service, "inner", parent=root)

        moved = folder_service.move_folder(inner.id, None)

        assert moved.path == "inner"
        assert moved.parent_folder_id is None

    def test_rename_rewrites_children(self, folder_service):
        """Should carry the new name into descendant paths."""
        root = _create(folder_service, "old")
        child = _create(folder_service, "kid", parent=root)

        renamed = folder_service.rename_folder(root.id, "new")

        assert renamed.path == "new"
        assert folder_service.get_folder(child.id).path == "new/kid"


class TestFolderDelete:
    """Deleting folders."""

    def test_folder_with_children_cannot_be_deleted(self, folder_service):
        """Should refuse to delete a non-empty folder."""
        root = _create(folder_service, "full")
        _create(folder_service, "inside", parent=root)

        with pytest.raises(EntityValidationError):
            folder_service.delete_folder(root.id)

    def test_empty_folder_is_deleted(self, folder_service):
        """Should soft delete an empty folder and report missing ones."""
        folder = _create(folder_service, "empty")

        assert folder_service.delete_folder(folder.id) is True
        assert folder_service.delete_folder(folder.id) is False

    def test_tree_nests_children(self, folder_service):
        """Should build a forest of folder nodes."""
        root = _create(folder_service, "r")
        _create(folder_service, "c1", parent=root)
        _create(folder_service, "c2", parent=root)

        tree = folder_service.get_folder_tree()

        assert len(tree) == 1
        assert [node.folder.name for node in tree[0].children] == ["c1", "c2"]
