"""File use cases: registering uploads and organising the media library."""

import hashlib
import uuid
from pathlib import PurePath
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.models.pagination import PagedResult
from src.cms.core.services.base import EntityService, apply_changes, require_id, require_text
from src.cms.entities.content.file import FILE_ENTITY_TYPES, BaseFile, FileType


class FileUpload(BaseModel):
    original_file_name: str = Field(min_length=1, max_length=255)
    content: bytes = Field(repr=False)
    content_type: str | None = Field(default=None, max_length=200)
    folder_id: int | None = None
    description: str | None = Field(default=None, max_length=1000)
    alt: str | None = Field(default=None, max_length=500)
    is_public: bool = False
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Type specific fields such as width or duration"
    )


class FileUpdate(BaseModel):
    original_file_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    alt: str | None = Field(default=None, max_length=500)
    is_public: bool | None = None
    is_processed: bool | None = None
    processing_status: str | None = Field(default=None, max_length=100)


def file_extension(file_name: str) -> str | None:
    suffix = PurePath(file_name).suffix
    return suffix[1:].lower() if suffix else None


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class FileService(EntityService):
    entity_label = "File"

    def get_file(self, file_id: int) -> BaseFile:
        require_id(file_id, "File")
        with self._logged("get", file_id=file_id):
            return self._found(self._uow.files.get_by_id(file_id), file_id)

    def get_files(self, page: int, page_size: int) -> PagedResult[BaseFile]:
        with self._logged("list"):
            return self._uow.files.get_paged_result(page, page_size)

    def get_files_in_folder(self, folder_id: int | None) -> list[BaseFile]:
        if folder_id is not None:
            require_id(folder_id, "Folder")
        return self._uow.files.get_by_folder(folder_id)

    def search_files(self, term: str) -> list[BaseFile]:
        return self._uow.files.search_by_name(term)

    def _check_folder(self, folder_id: int | None) -> None:
        if folder_id is None:
            return
        require_id(folder_id, "Folder")
        if not self._uow.folders.exists(folder_id):
            raise EntityValidationError(f"Folder {folder_id} not found")

    def register_upload(self, upload: FileUpload) -> BaseFile:
        """Store an uploaded file as the entity variant matching its content type."""
        name = require_text(upload.original_file_name, "File name")
        if PurePath(name).name != name:
            raise EntityValidationError("File name cannot contain a path")
        self._check_folder(upload.folder_id)

        file_type = FileType.from_content_type(upload.content_type)
        extension = file_extension(name)
        stored_name = uuid.uuid4().hex + (f".{extension}" if extension else "")
        entity_type = FILE_ENTITY_TYPES[file_type]
        try:
            file = entity_type(
                **{
                    **upload.metadata,
                    **upload.model_dump(exclude={"content", "metadata"}),
                    "original_file_name": name,
                    "stored_file_name": stored_name,
                    "file_extension": extension,
                    "file_content": upload.content,
                    "file_size": len(upload.content),
                    "hash": content_hash(upload.content),
                    "file_type": file_type,
                }
            )
        except ValueError as e:
            raise EntityValidationError(str(e)) from e

        if self._uow.files.exists_by_hash(file.hash):
            logger.info("Uploaded file {} duplicates existing content {}", name, file.hash)
        with self._logged("register", file_name=name):
            created = self._uow.files.add(file)
            self._uow.save_changes()
        logger.info("File {} registered as {} ({} bytes)", created.id, file_type.value, created.file_size)
        return created

    def update_file(self, file_id: int, data: FileUpdate) -> BaseFile:
        file = self.get_file(file_id)
        with self._logged("update", file_id=file_id):
            updated = self._uow.files.update(apply_changes(file, data))
            self._uow.save_changes()
        return self._found(updated, file_id)

    def move_to_folder(self, file_id: int, folder_id: int | None) -> BaseFile:
        """Move a file into ``folder_id``, or out of every folder with None."""
        file = self.get_file(file_id)
        self._check_folder(folder_id)
        file.folder_id = folder_id
        with self._logged("move", file_id=file_id, folder_id=folder_id):
            moved = self._uow.files.update(file)
            self._uow.save_changes()
        logger.info("File {} moved to folder {}", file_id, folder_id)
        return self._found(moved, file_id)

    def record_download(self, file_id: int) -> BaseFile:
        require_id(file_id, "File")
        with self._logged("record download of", file_id=file_id):
            recorded = self._uow.files.update_download_count(file_id)
        if not recorded:
            raise EntityNotFoundError(self.entity_label, file_id)
        return self.get_file(file_id)

    def get_duplicates(self) -> dict[str, list[BaseFile]]:
        """Files sharing identical content, keyed by SHA-256 hash."""
        with self._logged("find duplicates of"):
            return self._uow.files.get_duplicate_files()

    def get_total_size(self, folder_id: int | None = None) -> int:
        return self._uow.files.get_total_size(folder_id)

    def get_file_count_by_type(self) -> dict[FileType, int]:
        return self._uow.files.get_file_count_by_type()

    def delete_file(self, file_id: int) -> bool:
        require_id(file_id, "File")
        if not self._uow.files.exists(file_id):
            logger.warning("Failed to delete file {} - not found", file_id)
            return False
        with self._logged("delete", file_id=file_id):
            return self._uow.files.soft_delete(file_id)

    def restore_file(self, file_id: int) -> bool:
        require_id(file_id, "File")
        with self._logged("restore", file_id=file_id):
            return self._uow.files.restore(file_id)
