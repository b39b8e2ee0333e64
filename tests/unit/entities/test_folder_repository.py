"""Unit tests for folder tree queries."""

import pytest

from src.cms.entities.content.file import FileRepository, OtherFile
from src.cms.entities.content.folder import Folder, FolderRepository


@pytest.fixture
def folders(session) -> FolderRepository:
    return FolderRepository(session)


@pytest.fixture
def tree(folders):
    """media > images > icons, plus an empty root folder."""
    media = folders.add(Folder(name="media", path="media"))
    images = folders.add(Folder(name="images", path="media/images", parent_folder_id=media.id))
    icons = folders.add(Folder(name="icons", path="media/images/icons", parent_folder_id=images.id))
    empty = folders.add(Folder(name="empty", path="empty"))
    folders.save_changes()
    return {"media": media, "images": images, "icons": icons, "empty": empty}


def _file(name: str, folder_id: int | None, size: int) -> OtherFile:
    return OtherFile(
        original_file_name=name, stored_file_name=f"{name}-stored", folder_id=folder_id, file_size=size
    )


class TestFolderTree:
    """Ancestor and descendant walks."""

    def test_ancestors_root_first(self, folders, tree):
        """Should list ancestors from the root down."""
        ancestors = folders.get_ancestors(tree["icons"].id)
        assert [f.name for f in ancestors] == ["media", "images"]

    def test_depth(self, folders, tree):
        """Should count ancestors."""
        assert folders.get_depth(tree["media"].id) == 0
        assert folders.get_depth(tree["icons"].id) == 2

    def test_descendants(self, folders, tree):
        """Should walk the whole subtree."""
        assert [f.name for f in folders.get_descendants(tree["media"].id)] == ["images", "icons"]
        assert folders.get_descendants(tree["empty"].id) == []

    def test_is_descendant_of(self, folders, tree):
        """Should detect ancestry in one direction only."""
        assert folders.is_descendant_of(tree["icons"].id, tree["media"].id) is True
        assert folders.is_descendant_of(tree["media"].id, tree["icons"].id) is False


class TestFolderContents:
    """File counts, sizes and emptiness."""

    @pytest.fixture
    def stocked(self, session, tree):
        files = FileRepository(session)
        files.add(_file("a", tree["images"].id, 100))
        files.add(_file("b", tree["icons"].id, 10))
        gone = files.add(_file("c", tree["icons"].id, 1000))
        files.save_changes()
        files.soft_delete(gone.id)
        return tree

    def test_file_count(self, folders, stocked):
        """Should count live files, optionally through subfolders."""
        assert folders.get_total_file_count(stocked["images"].id) == 1
        assert folders.get_total_file_count(stocked["media"].id) == 0
        assert folders.get_total_file_count(stocked["media"].id, include_subfolders=True) == 2

    def test_total_size(self, folders, stocked):
        """Should sum live file sizes."""
        assert folders.get_total_size(stocked["icons"].id) == 10
        assert folders.get_total_size(stocked["images"].id, include_subfolders=True) == 110

    def test_empty_folders(self, folders, stocked):
        """Should list folders without files or subfolders."""
        assert [f.name for f in folders.get_empty_folders()] == ["empty"]

    def test_can_delete(self, folders, stocked):
        """Should only allow deleting empty folders."""
        assert folders.has_files(stocked["icons"].id) is True
        assert folders.can_delete_folder(stocked["images"].id) is False
        assert folders.can_delete_folder(stocked["empty"].id) is True

    def test_soft_deleted_subfolder_no_longer_blocks(self, folders, tree):
        """Should ignore soft-deleted subfolders."""
        folders.soft_delete(tree["icons"].id)

        assert folders.has_sub_folders(tree["images"].id) is False
        assert [f.name for f in folders.get_empty_folders()] == ["empty", "images"]
