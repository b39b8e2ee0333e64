"""Unit tests for FileService."""

import hashlib

import pytest

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.services import FileUpdate, FileUpload, FolderCreate
from src.cms.core.services.file_service import file_extension
from src.cms.entities.content.file import FileType, ImageFile, OtherFile


def _upload(service, name="photo.JPG", content=b"\xff\xd8image", content_type="image/jpeg", **fields):
    return service.register_upload(
        FileUpload(original_file_name=name, content=content, content_type=content_type, **fields)
    )


class TestRegisterUpload:
    """Turning uploads into file records."""

    def test_upload_records_type_hash_and_extension(self, file_service):
        """Should classify the file and fingerprint its content."""
        file = _upload(file_service, metadata={"width": 640, "height": 480})

        assert isinstance(file, ImageFile)
        assert file.file_type is FileType.IMAGE
        assert file.file_extension == "jpg"
        assert file.file_size == len(b"\xff\xd8image")
        assert file.hash == hashlib.sha256(b"\xff\xd8image").hexdigest()
        assert file.stored_file_name.endswith(".jpg")
        assert file.stored_file_name != "photo.JPG"
        assert file.width == 640

    def test_unknown_content_type_is_other(self, file_service):
        """Should fall back to the generic variant."""
        file = _upload(file_service, name="blob", content=b"data", content_type=None)

        assert isinstance(file, OtherFile)
        assert file.file_extension is None

    def test_stored_entity_round_trips_as_variant(self, file_service):
        """Should hand back the variant class when reading."""
        file = _upload(file_service, name="report.pdf", content=b"%PDF", content_type="application/pdf")

        assert file_service.get_file(file.id).file_type is FileType.DOCUMENT

    def test_name_with_path_is_rejected(self, file_service):
        """Should refuse names that include directories."""
        with pytest.raises(EntityValidationError, match="path"):
            _upload(file_service, name="../etc/passwd")

    def test_invalid_metadata_is_rejected(self, file_service):
        """Should convert metadata validation failures."""
        with pytest.raises(EntityValidationError):
            _upload(file_service, metadata={"width": -1})

    def test_missing_folder_is_rejected(self, file_service):
        """Should refuse uploads into unknown folders."""
        with pytest.raises(EntityValidationError, match="Folder 9 not found"):
            _upload(file_service, folder_id=9)


class TestFileOperations:
    """Moves, downloads and housekeeping queries."""

    def test_move_between_folders(self, file_service, folder_service):
        """Should move a file into a folder and back to the root."""
        folder = folder_service.create_folder(FolderCreate(name="images"))
        file = _upload(file_service)

        moved = file_service.move_to_folder(file.id, folder.id)
        assert moved.folder_id == folder.id
        assert [f.id for f in file_service.get_files_in_folder(folder.id)] == [file.id]

        assert file_service.move_to_folder(file.id, None).folder_id is None

    def test_download_count_increments(self, file_service):
        """Should count downloads and stamp the last access."""
        file = _upload(file_service)

        file_service.record_download(file.id)
        recorded = file_service.record_download(file.id)

        assert recorded.download_count == 2
        assert recorded.last_accessed_at is not None

    def test_download_of_missing_file_raises(self, file_service):
        """Should raise EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            file_service.record_download(123)

    def test_duplicates_grouped_by_hash(self, file_service):
        """Should group files with identical content."""
        first = _upload(file_service, name="a.jpg")
        second = _upload(file_service, name="b.jpg")
        _upload(file_service, name="c.jpg", content=b"different")

        duplicates = file_service.get_duplicates()

        assert list(duplicates) == [first.hash]
        assert [f.id for f in duplicates[first.hash]] == [first.id, second.id]

    def test_totals(self, file_service):
        """Should sum sizes and count per type."""
        _upload(file_service, content=b"1234")
        _upload(file_service, name="notes.txt", content=b"12", content_type="text/plain")

        assert file_service.get_total_size() == 6
        assert file_service.get_file_count_by_type() == {FileType.IMAGE: 1, FileType.DOCUMENT: 1}

    def test_update_and_delete(self, file_service):
        """Should update metadata and soft delete the record."""
        file = _upload(file_service)

        updated = file_service.update_file(file.id, FileUpdate(alt="A photo", is_public=True))
        assert updated.alt == "A photo" and updated.is_public is True

        assert file_service.delete_file(file.id) is True
        assert file_service.search_files("photo") == []
        assert file_service.restore_file(file.id) is True


class TestFileExtension:
    """Extension parsing."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("photo.JPG", "jpg"), ("archive.tar.gz", "gz"), ("README", None)],
    )
    def test_file_extension(self, name, expected):
        """Should return the lower-case last suffix without the dot."""
        assert file_extension(name) == expected
