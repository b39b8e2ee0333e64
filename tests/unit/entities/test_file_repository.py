"""Unit tests for the file repositories."""

import pytest

from src.cms.entities.content.file import (
    ArchiveFile,
    ArchiveFileRepository,
    AudioFile,
    AudioFileRepository,
    DocumentFile,
    DocumentFileRepository,
    FileRepository,
    FileType,
    ImageFile,
    ImageFileRepository,
    OtherFile,
    VideoFile,
    VideoFileRepository,
)
from src.cms.entities.content.folder import Folder, FolderRepository


@pytest.fixture
def files(session) -> FileRepository:
    return FileRepository(session)


def _image(name: str, width: int, height: int, **fields) -> ImageFile:
    return ImageFile(
        original_file_name=f"{name}.png",
        stored_file_name=f"{name}-stored.png",
        file_extension="png",
        content_type="image/png",
        width=width,
        height=height,
        **fields,
    )


class TestFileRepository:
    """Queries spanning every file type."""

    def test_returns_matching_variant(self, files, session):
        """Should hand back the entity class matching each row's type."""
        files.add(_image("logo", 200, 100))
        files.add(DocumentFile(original_file_name="a.pdf", stored_file_name="a-stored.pdf", page_count=3))
        files.add(OtherFile(original_file_name="blob", stored_file_name="blob-stored"))
        files.save_changes()

        by_name = {file.original_file_name: file for file in files.get_all()}

        assert isinstance(by_name["logo.png"], ImageFile)
        assert by_name["logo.png"].aspect_ratio == 2.0
        assert isinstance(by_name["a.pdf"], DocumentFile)
        assert by_name["a.pdf"].page_count == 3
        assert isinstance(by_name["blob"], OtherFile)

    def test_duplicates_group_by_hash(self, files):
        """Should group live files sharing a hash and skip unique ones."""
        files.add(_image("one", 10, 10, hash="aaa"))
        files.add(_image("two", 10, 10, hash="aaa"))
        files.add(_image("three", 10, 10, hash="bbb"))
        deleted = files.add(_image("four", 10, 10, hash="bbb"))
        files.save_changes()
        files.soft_delete(deleted.id)

        duplicates = files.get_duplicate_files()

        assert list(duplicates) == ["aaa"]
        assert [file.original_file_name for file in duplicates["aaa"]] == ["one.png", "two.png"]

    def test_orphaned_files(self, files, session):
        """Should list files without a live folder."""
        folders = FolderRepository(session)
        live = folders.add(Folder(name="live", path="live"))
        gone = folders.add(Folder(name="gone", path="gone"))
        folders.save_changes()
        files.add(_image("kept", 10, 10, folder_id=live.id))
        files.add(_image("loose", 10, 10))
        files.add(_image("stranded", 10, 10, folder_id=gone.id))
        files.save_changes()
        folders.soft_delete(gone.id)

        orphaned = [file.original_file_name for file in files.get_orphaned_files()]

        assert orphaned == ["loose.png", "stranded.png"]

    def test_size_and_counts(self, files):
        """Should aggregate only live files."""
        files.add(_image("a", 10, 10, file_size=100))
        files.add(DocumentFile(original_file_name="b.pdf", stored_file_name="b", file_size=50))
        removed = files.add(_image("c", 10, 10, file_size=1000))
        files.save_changes()
        files.soft_delete(removed.id)

        assert files.get_total_size() == 150
        assert files.get_file_count_by_type() == {FileType.IMAGE: 1, FileType.DOCUMENT: 1}
        assert files.exists_by_hash("missing") is False

    def test_thumbnails_and_lookups(self, files):
        """Should filter by thumbnail presence, extension and stored name."""
        files.add(_image("thumb", 10, 10, thumbnail_content=b"png"))
        files.add(_image("plain", 10, 10))
        files.save_changes()

        assert [f.original_file_name for f in files.get_files_with_thumbnails()] == ["thumb.png"]
        assert [f.original_file_name for f in files.get_files_without_thumbnails()] == ["plain.png"]
        assert len(files.get_by_extension("PNG")) == 2
        assert files.get_by_stored_file_name("plain-stored.png").original_file_name == "plain.png"
        assert files.get_by_stored_file_name("nope") is None

    def test_counters(self, files):
        """Should bump the download count and report missing files."""
        file = files.add(_image("a", 10, 10))
        files.save_changes()

        assert files.update_download_count(file.id) is True
        assert files.update_last_accessed(file.id) is True
        assert files.get_by_id(file.id).download_count == 1
        assert files.update_download_count(999) is False
        assert files.update_last_accessed(999) is False


class TestTypedFileRepositories:
    """Repositories narrowed to a single file type."""

    def test_scope_excludes_other_types(self, files, session):
        """Should only see rows of the repository's own type."""
        files.add(_image("pic", 800, 600))
        files.add(DocumentFile(original_file_name="a.pdf", stored_file_name="a", page_count=2))
        files.save_changes()

        images = ImageFileRepository(session)

        assert [f.original_file_name for f in images.get_all()] == ["pic.png"]
        assert images.count() == 1

    def test_add_forces_type(self, session):
        """Should store rows with the repository's type."""
        archives = ArchiveFileRepository(session)
        created = archives.add(
            ArchiveFile(original_file_name="a.zip", stored_file_name="a.zip", file_count=4)
        )
        archives.save_changes()

        assert created.file_type == FileType.ARCHIVE
        assert FileRepository(session).get_by_type(FileType.ARCHIVE)[0].id == created.id

    def test_dimensions(self, files, session):
        """Should filter images by width and height bounds."""
        files.add(_image("small", 100, 100))
        files.add(_image("wide", 1920, 1080))
        files.save_changes()

        large = ImageFileRepository(session).get_by_dimensions(min_width=1000)

        assert [f.original_file_name for f in large] == ["wide.png"]

    def test_duration(self, session):
        """Should filter and order media by duration."""
        audio = AudioFileRepository(session)
        audio.add(AudioFile(original_file_name="long.mp3", stored_file_name="l", duration=300.0))
        audio.add(AudioFile(original_file_name="short.mp3", stored_file_name="s", duration=30.0))
        audio.save_changes()

        result = audio.get_by_duration(max_seconds=400)

        assert [f.original_file_name for f in result] == ["short.mp3", "long.mp3"]

    def test_video_has_both_filters(self, session):
        """Should combine dimension and duration filters for video."""
        videos = VideoFileRepository(session)
        videos.add(
            VideoFile(original_file_name="clip.mp4", stored_file_name="c", width=1280, height=720, duration=12.5)
        )
        videos.save_changes()

        assert len(videos.get_by_dimensions(max_height=720)) == 1
        assert videos.get_by_duration(min_seconds=60) == []

    def test_page_and_file_counts(self, session):
        """Should filter documents by pages and archives by contents."""
        documents = DocumentFileRepository(session)
        documents.add(DocumentFile(original_file_name="big.pdf", stored_file_name="b", page_count=120))
        documents.add(DocumentFile(original_file_name="memo.pdf", stored_file_name="m", page_count=1))
        archives = ArchiveFileRepository(session)
        archives.add(
            ArchiveFile(original_file_name="a.zip", stored_file_name="z", file_count=10, uncompressed_size=5000)
        )
        documents.save_changes()

        assert [f.original_file_name for f in documents.get_by_page_count(min_pages=10)] == ["big.pdf"]
        assert len(archives.get_by_file_count(min_files=5, max_files=20)) == 1
        assert archives.get_by_uncompressed_size(max_size=100) == []
