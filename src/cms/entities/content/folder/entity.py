"""Folder domain entity."""

from enum import Enum

from pydantic import Field

from src.cms.entities.core._base import Entity

PATH_SEPARATOR = "/"
MAX_PATH_LENGTH = 1024


class FolderType(str, Enum):
    GENERAL = "General"
    IMAGES = "Images"
    DOCUMENTS = "Documents"
    VIDEOS = "Videos"
    AUDIO = "Audio"
    USER_AVATARS = "UserAvatars"
    COMPANY_ASSETS = "CompanyAssets"
    TEMPORARY = "Temporary"


def build_path(parent_path: str | None, name: str) -> str:
    """Materialised path of a folder called ``name`` under ``parent_path``."""
    return f"{parent_path}{PATH_SEPARATOR}{name}" if parent_path else name


class Folder(Entity):
    """A node in the media library. ``path`` mirrors the chain of names from the root."""

    name: str = Field(description="Folder name", min_length=1, pattern=r"^[^/]+$")
    description: str | None = Field(default=None)
    path: str = Field(description="Materialised path", max_length=MAX_PATH_LENGTH)
    parent_folder_id: int | None = Field(default=None)
    folder_type: FolderType = Field(default=FolderType.GENERAL)
    is_public: bool = Field(default=False)
    user_id: int | None = Field(default=None, description="Owning user, if any")

    @property
    def depth(self) -> int:
        return self.path.count(PATH_SEPARATOR)
