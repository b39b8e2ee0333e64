"""Entity package: File and its typed variants."""

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
from .repository import (
    ArchiveFileRepository,
    AudioFileRepository,
    DocumentFileRepository,
    FileRepository,
    ImageFileRepository,
    OtherFileRepository,
    TypedFileRepository,
    VideoFileRepository,
)
from .table import FileTable

__all__ = [
    "FILE_ENTITY_TYPES",
    "ArchiveFile",
    "ArchiveFileRepository",
    "AudioFile",
    "AudioFileRepository",
    "BaseFile",
    "DocumentFile",
    "DocumentFileRepository",
    "FileRepository",
    "FileTable",
    "FileType",
    "ImageFile",
    "ImageFileRepository",
    "OtherFile",
    "OtherFileRepository",
    "TypedFileRepository",
    "VideoFile",
    "VideoFileRepository",
]
