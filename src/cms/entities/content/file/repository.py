from collections import defaultdict
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy import func
from sqlmodel import or_, select

from src.cms.entities.core._base import EntityTable, utc_now
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci, equals_ci

from .entity import (
    FILE_ENTITY_TYPES,
    ArchiveFile,
    AudioFile,
    BaseFile,
    DocumentFile,
    FileType,
    ImageFile,
    OtherFile,
    VideoFile,
)
from .table import FileTable


def _between(column: Any, minimum: Any = None, maximum: Any = None) -> list[Any]:
    criteria = []
    if minimum is not None:
        criteria.append(column >= minimum)
    if maximum is not None:
        criteria.append(column <= maximum)
    return criteria


class FileRepository(SoftDeleteRepository[BaseFile, FileTable]):
    """Data-access layer for stored files of every type."""

    entity_model = BaseFile
    table_model = FileTable

    def _to_entity(self, row: EntityTable) -> BaseFile:
        entity_type = FILE_ENTITY_TYPES.get(row.file_type, self.entity_model)
        return entity_type.model_validate(row, from_attributes=True)

    def get_by_folder(self, folder_id: int | None) -> list[BaseFile]:
        return self.find(FileTable.folder_id == folder_id, order_by=FileTable.original_file_name)

    def get_by_type(self, file_type: FileType) -> list[BaseFile]:
        return self.find(FileTable.file_type == file_type)

    def get_public_files(self) -> list[BaseFile]:
        return self.find(FileTable.is_public == True)  # noqa: E712

    def get_by_stored_file_name(self, stored_file_name: str) -> BaseFile | None:
        return self.first_or_default(FileTable.stored_file_name == stored_file_name)

    def get_by_hash(self, file_hash: str) -> list[BaseFile]:
        return self.find(FileTable.hash == file_hash)

    def exists_by_hash(self, file_hash: str) -> bool:
        return self.any(FileTable.hash == file_hash)

    def search_by_name(self, term: str) -> list[BaseFile]:
        if not term or not term.strip():
            return []
        return self.find(
            contains_ci(FileTable.original_file_name, term.strip()),
            order_by=FileTable.original_file_name,
        )

    def get_by_extension(self, extension: str) -> list[BaseFile]:
        return self.find(equals_ci(FileTable.file_extension, extension.lstrip(".")))

    def get_by_content_type(self, content_type: str) -> list[BaseFile]:
        """Exact MIME match, or a family match for patterns such as ``image/*``."""
        if content_type.endswith("/*"):
            prefix = content_type[:-1].lower()
            return self.find(func.lower(FileTable.content_type).startswith(prefix, autoescape=True))
        return self.find(equals_ci(FileTable.content_type, content_type))

    def get_by_user(self, user_id: int) -> list[BaseFile]:
        return self.find(FileTable.created_by_user_id == user_id)

    def get_by_date_range(self, start: datetime, end: datetime) -> list[BaseFile]:
        return self.find(*_between(FileTable.created_at, start, end), order_by=FileTable.created_at)

    def get_unprocessed_files(self) -> list[BaseFile]:
        return self.find(FileTable.is_processed == False, order_by=FileTable.created_at)  # noqa: E712

    def get_recent_files(self, count: int = 10) -> list[BaseFile]:
        return self._list(self._select().order_by(FileTable.created_at.desc()).limit(count))

    def get_large_files(self, min_size: int) -> list[BaseFile]:
        return self.find(FileTable.file_size >= min_size, order_by=FileTable.file_size.desc())

    def get_orphaned_files(self) -> list[BaseFile]:
        """Live files with no folder, or whose folder is gone or soft-deleted."""
        from src.cms.entities.content.folder.table import FolderTable

        statement = (
            self._select()
            .outerjoin(FolderTable, FolderTable.id == FileTable.folder_id)
            .where(
                or_(
                    FileTable.folder_id == None,  # noqa: E711
                    FolderTable.id == None,  # noqa: E711
                    FolderTable.is_deleted == True,  # noqa: E712
                )
            )
            .order_by(FileTable.id)
        )
        return self._list(statement)

    def get_duplicate_files(self) -> dict[str, list[BaseFile]]:
        """Live files grouped by content hash, only for hashes seen more than once."""
        duplicate_hashes = (
            select(FileTable.hash)
            .where(*self._conditions([FileTable.hash != None], include_deleted=False))  # noqa: E711
            .group_by(FileTable.hash)
            .having(func.count() > 1)
        )
        groups: dict[str, list[BaseFile]] = defaultdict(list)
        for file in self.find(FileTable.hash.in_(duplicate_hashes), order_by=[FileTable.hash, FileTable.id]):
            groups[file.hash].append(file)
        return dict(groups)

    def get_files_with_thumbnails(self) -> list[BaseFile]:
        return self.find(FileTable.thumbnail_content != None)  # noqa: E711

    def get_files_without_thumbnails(self) -> list[BaseFile]:
        return self.find(FileTable.thumbnail_content == None)  # noqa: E711

    def get_total_size(self, folder_id: int | None = None) -> int:
        statement = select(func.coalesce(func.sum(FileTable.file_size), 0))
        criteria = [FileTable.folder_id == folder_id] if folder_id is not None else []
        statement = statement.where(*self._conditions(criteria, include_deleted=False))
        return int(self._session.exec(statement).one())

    def get_file_count_by_type(self) -> dict[FileType, int]:
        statement = (
            select(FileTable.file_type, func.count())
            .where(*self._conditions([], include_deleted=False))
            .group_by(FileTable.file_type)
        )
        return {file_type: count for file_type, count in self._session.exec(statement).all()}

    def update_download_count(self, file_id: int) -> bool:
        row = self._get_row(file_id)
        if row is None:
            logger.warning("File {} not found for download count update", file_id)
            return False
        now = utc_now()
        row.download_count += 1
        row.last_accessed_at = now
        self._session.add(row)
        self.save_changes()
        return True

    def update_last_accessed(self, file_id: int, accessed_at: datetime | None = None) -> bool:
        row = self._get_row(file_id)
        if row is None:
            logger.warning("File {} not found for last access update", file_id)
            return False
        row.last_accessed_at = accessed_at or utc_now()
        self._session.add(row)
        self.save_changes()
        return True


class TypedFileRepository(FileRepository):
    """File repository narrowed to one ``FileType``."""

    file_type: FileType

    def _scope(self) -> list[Any]:
        return [FileTable.file_type == self.file_type]

    def _new_row(self, entity: BaseFile) -> EntityTable:
        row = super()._new_row(entity)
        row.file_type = self.file_type
        return row


class _DimensionQueries:
    def get_by_dimensions(
        self,
        min_width: int | None = None,
        min_height: int | None = None,
        max_width: int | None = None,
        max_height: int | None = None,
    ) -> list:
        return self.find(
            *_between(FileTable.width, min_width, max_width),
            *_between(FileTable.height, min_height, max_height),
        )


class _DurationQueries:
    def get_by_duration(
        self, min_seconds: float | None = None, max_seconds: float | None = None
    ) -> list:
        return self.find(
            *_between(FileTable.duration, min_seconds, max_seconds),
            order_by=FileTable.duration,
        )


class ImageFileRepository(_DimensionQueries, TypedFileRepository):
    entity_model = ImageFile
    file_type = FileType.IMAGE


class VideoFileRepository(_DimensionQueries, _DurationQueries, TypedFileRepository):
    entity_model = VideoFile
    file_type = FileType.VIDEO


class AudioFileRepository(_DurationQueries, TypedFileRepository):
    entity_model = AudioFile
    file_type = FileType.AUDIO


class DocumentFileRepository(TypedFileRepository):
    entity_model = DocumentFile
    file_type = FileType.DOCUMENT

    def get_by_page_count(self, min_pages: int | None = None, max_pages: int | None = None) -> list[DocumentFile]:
        return self.find(
            *_between(FileTable.page_count, min_pages, max_pages), order_by=FileTable.page_count
        )


class ArchiveFileRepository(TypedFileRepository):
    entity_model = ArchiveFile
    file_type = FileType.ARCHIVE

    def get_by_file_count(self, min_files: int | None = None, max_files: int | None = None) -> list[ArchiveFile]:
        return self.find(*_between(FileTable.file_count, min_files, max_files))

    def get_by_uncompressed_size(
        self, min_size: int | None = None, max_size: int | None = None
    ) -> list[ArchiveFile]:
        return self.find(*_between(FileTable.uncompressed_size, min_size, max_size))


class OtherFileRepository(TypedFileRepository):
    entity_model = OtherFile
    file_type = FileType.OTHER
