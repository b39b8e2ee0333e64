"""File domain entities.

All variants share one table and are told apart by ``file_type``. The
repository hands back the variant class that matches each row.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from src.cms.entities.core._base import Entity

_ARCHIVE_CONTENT_TYPES = frozenset(
    {
        "application/zip",
        "application/x-zip-compressed",
        "application/x-tar",
        "application/gzip",
        "application/x-gzip",
        "application/x-7z-compressed",
        "application/vnd.rar",
        "application/x-rar-compressed",
        "application/x-bzip2",
    }
)

_DOCUMENT_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/rtf",
        "application/vnd.ms-excel",
        "application/vnd.ms-powerpoint",
        "application/vnd.oasis.opendocument.text",
        "application/vnd.oasis.opendocument.spreadsheet",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    }
)


class FileType(str, Enum):
    DOCUMENT = "Document"
    IMAGE = "Image"
    VIDEO = "Video"
    AUDIO = "Audio"
    ARCHIVE = "Archive"
    OTHER = "Other"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> "FileType":
        """Classify a MIME type; anything unrecognised is ``OTHER``."""
        if not content_type:
            return cls.OTHER
        mime = content_type.split(";", 1)[0].strip().lower()
        major = mime.split("/", 1)[0]
        if major == "image":
            return cls.IMAGE
        if major == "video":
            return cls.VIDEO
        if major == "audio":
            return cls.AUDIO
        if mime in _ARCHIVE_CONTENT_TYPES:
            return cls.ARCHIVE
        if major == "text" or mime in _DOCUMENT_CONTENT_TYPES:
            return cls.DOCUMENT
        return cls.OTHER


class BaseFile(Entity):
    """Fields shared by every stored file."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    file_type: FileType = Field(default=FileType.OTHER)
    original_file_name: str = Field(description="Name as uploaded")
    stored_file_name: str = Field(description="Unique name in storage")
    file_extension: str | None = Field(default=None, description="Lower-case, without dot")
    file_content: bytes | None = Field(default=None, repr=False)
    content_type: str | None = Field(default=None, description="MIME type")
    file_size: int = Field(default=0, ge=0, description="Size in bytes")
    description: str | None = Field(default=None)
    alt: str | None = Field(default=None, description="Alternative text")
    is_public: bool = Field(default=False)
    folder_id: int | None = Field(default=None)
    download_count: int = Field(default=0, ge=0)
    last_accessed_at: datetime | None = Field(default=None)
    hash: str | None = Field(default=None, description="SHA-256 of the content")
    is_processed: bool = Field(default=False)
    processing_status: str | None = Field(default=None)


class ImageFile(BaseFile):
    file_type: FileType = Field(default=FileType.IMAGE)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    thumbnail_content: bytes | None = Field(default=None, repr=False)

    @property
    def aspect_ratio(self) -> float | None:
        if not self.width or not self.height:
            return None
        return self.width / self.height


class VideoFile(BaseFile):
    file_type: FileType = Field(default=FileType.VIDEO)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    duration: float | None = Field(default=None, ge=0, description="Seconds")
    video_codec: str | None = Field(default=None)
    audio_codec: str | None = Field(default=None)
    frame_rate: float | None = Field(default=None, gt=0)
    bitrate: int | None = Field(default=None, gt=0, description="Bits per second")
    thumbnail_content: bytes | None = Field(default=None, repr=False)


class AudioFile(BaseFile):
    file_type: FileType = Field(default=FileType.AUDIO)
    duration: float | None = Field(default=None, ge=0, description="Seconds")
    audio_codec: str | None = Field(default=None)
    bitrate: int | None = Field(default=None, gt=0, description="Bits per second")
    tags: dict[str, Any] | None = Field(default=None, description="Artist, album and so on")


class DocumentFile(BaseFile):
    file_type: FileType = Field(default=FileType.DOCUMENT)
    page_count: int | None = Field(default=None, ge=0)
    thumbnail_content: bytes | None = Field(default=None, repr=False)


class ArchiveFile(BaseFile):
    file_type: FileType = Field(default=FileType.ARCHIVE)
    file_count: int | None = Field(default=None, ge=0)
    uncompressed_size: int | None = Field(default=None, ge=0)


class OtherFile(BaseFile):
    file_type: FileType = Field(default=FileType.OTHER)


FILE_ENTITY_TYPES: dict[FileType, type[BaseFile]] = {
    FileType.IMAGE: ImageFile,
    FileType.VIDEO: VideoFile,
    FileType.AUDIO: AudioFile,
    FileType.DOCUMENT: DocumentFile,
    FileType.ARCHIVE: ArchiveFile,
    FileType.OTHER: OtherFile,
}
