"""File database table model.

One table holds every variant; columns that only apply to some variants are
nullable.
"""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from src.cms.entities.core._base import EntityTable

from .entity import FileType


class FileTable(EntityTable, table=True):
    __tablename__ = "files"

    file_type: FileType = Field(default=FileType.OTHER, index=True)
    original_file_name: str = Field(max_length=255)
    stored_file_name: str = Field(max_length=255, unique=True, index=True)
    file_extension: str | None = Field(default=None, max_length=20, index=True)
    file_content: bytes | None = Field(default=None, sa_type=sa.LargeBinary)
    content_type: str | None = Field(default=None, max_length=100)
    file_size: int = Field(default=0, sa_type=sa.BigInteger)
    description: str | None = Field(default=None, max_length=1000)
    alt: str | None = Field(default=None, max_length=255)
    is_public: bool = Field(default=False)
    folder_id: int | None = Field(default=None, foreign_key="folders.id", index=True)
    download_count: int = Field(default=0)
    last_accessed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))
    hash: str | None = Field(default=None, max_length=64, index=True)
    is_processed: bool = Field(default=False)
    processing_status: str | None = Field(default=None, max_length=50)

    # Image / Video
    width: int | None = Field(default=None)
    height: int | None = Field(default=None)
    thumbnail_content: bytes | None = Field(default=None, sa_type=sa.LargeBinary)
    # Video / Audio
    duration: float | None = Field(default=None)
    video_codec: str | None = Field(default=None, max_length=50)
    audio_codec: str | None = Field(default=None, max_length=50)
    frame_rate: float | None = Field(default=None)
    bitrate: int | None = Field(default=None)
    tags: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    # Document
    page_count: int | None = Field(default=None)
    # Archive
    file_count: int | None = Field(default=None)
    uncompressed_size: int | None = Field(default=None, sa_type=sa.BigInteger)
