"""Folder database table model."""

from sqlmodel import Field

from src.cms.entities.core._base import EntityTable

from .entity import MAX_PATH_LENGTH, FolderType


class FolderTable(EntityTable, table=True):
    __tablename__ = "folders"

    name: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    path: str = Field(max_length=MAX_PATH_LENGTH, index=True)
    parent_folder_id: int | None = Field(default=None, foreign_key="folders.id", index=True)
    folder_type: FolderType = Field(default=FolderType.GENERAL, index=True)
    is_public: bool = Field(default=False)
    user_id: int | None = Field(default=None, foreign_key="users.id", index=True)
