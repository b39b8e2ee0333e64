"""Folder use cases for the media library."""

from collections import defaultdict

from loguru import logger
from pydantic import BaseModel, Field

from src.cms.core.exceptions import EntityNotFoundError, EntityValidationError
from src.cms.core.services.base import EntityService, apply_changes, require_id, require_text
from src.cms.entities.content.folder import Folder, FolderType
from src.cms.entities.content.folder.entity import PATH_SEPARATOR


class FolderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255, pattern=r"^[^/]+$")
    description: str | None = Field(default=None, max_length=1000)
    parent_folder_id: int | None = None
    folder_type: FolderType = FolderType.GENERAL
    is_public: bool = False
    user_id: int | None = None


class FolderUpdate(BaseModel):
    description: str | None = Field(default=None, max_length=1000)
    folder_type: FolderType | None = None
    is_public: bool | None = None


class FolderNode(BaseModel):
    folder: Folder
    children: list["FolderNode"] = Field(default_factory=list)


class FolderService(EntityService):
    entity_label = "Folder"

    def get_folder(self, folder_id: int) -> Folder:
        require_id(folder_id, "Folder")
        with self._logged("get", folder_id=folder_id):
            return self._found(self._uow.folders.get_by_id(folder_id), folder_id)

    def get_folder_by_path(self, path: str) -> Folder:
        path = require_text(path, "Folder path")
        return self._found(self._uow.folders.get_by_path(path), path)

    def get_root_folders(self) -> list[Folder]:
        return self._uow.folders.get_root_folders()

    def get_sub_folders(self, folder_id: int) -> list[Folder]:
        require_id(folder_id, "Folder")
        return self._uow.folders.get_sub_folders(folder_id)

    def get_folder_tree(self) -> list[FolderNode]:
        """Every live folder as a forest ordered by path."""
        folders = sorted(self._uow.folders.get_all(), key=lambda folder: folder.path)
        nodes = {folder.id: FolderNode(folder=folder) for folder in folders}
        children: dict[int | None, list[FolderNode]] = defaultdict(list)
        for folder in folders:
            parent_id = folder.parent_folder_id if folder.parent_folder_id in nodes else None
            children[parent_id].append(nodes[folder.id])
        for folder_id, node in nodes.items():
            node.children = children.get(folder_id, [])
        return children[None]

    def get_breadcrumbs(self, folder_id: int) -> list[Folder]:
        """The folder's ancestors, root first, followed by the folder itself."""
        folder = self.get_folder(folder_id)
        return [*self._uow.folders.get_ancestors(folder_id), folder]

    def create_folder(self, data: FolderCreate) -> Folder:
        """Create a folder, suffixing its name when the path is already taken."""
        name = require_text(data.name, "Folder name")
        if data.parent_folder_id is not None:
            require_id(data.parent_folder_id, "Parent folder")

        with self._logged("create", name=name):
            path = self._uow.folders.generate_unique_path(name, data.parent_folder_id)
            folder = Folder(
                **{
                    **data.model_dump(),
                    "name": path.rsplit(PATH_SEPARATOR, 1)[-1],
                    "path": path,
                }
            )
            created = self._uow.folders.add(folder)
            self._uow.save_changes()
        logger.info("Folder {} created at {}", created.id, created.path)
        return created

    def update_folder(self, folder_id: int, data: FolderUpdate) -> Folder:
        folder = self.get_folder(folder_id)
        if data.folder_type is None and "folder_type" in data.model_fields_set:
            raise EntityValidationError("Folder type cannot be empty")
        with self._logged("update", folder_id=folder_id):
            updated = self._uow.folders.update(apply_changes(folder, data))
            self._uow.save_changes()
        return self._found(updated, folder_id)

    def rename_folder(self, folder_id: int, new_name: str) -> Folder:
        require_id(folder_id, "Folder")
        with self._logged("rename", folder_id=folder_id):
            renamed = self._uow.folders.rename_folder(folder_id, new_name)
        if not renamed:
            raise EntityNotFoundError(self.entity_label, folder_id)
        return self.get_folder(folder_id)

    def move_folder(self, folder_id: int, new_parent_id: int | None) -> Folder:
        """Move a folder under ``new_parent_id`` (None for the root), rewriting subtree paths."""
        require_id(folder_id, "Folder")
        if new_parent_id is not None:
            require_id(new_parent_id, "Parent folder")
        with self._logged("move", folder_id=folder_id, new_parent_id=new_parent_id):
            moved = self._uow.folders.move_folder(folder_id, new_parent_id)
        if not moved:
            missing = folder_id if not self._uow.folders.exists(folder_id) else new_parent_id
            raise EntityNotFoundError(self.entity_label, missing)
        return self.get_folder(folder_id)

    def delete_folder(self, folder_id: int) -> bool:
        """Soft delete an empty folder; folders with files or subfolders are rejected."""
        require_id(folder_id, "Folder")
        if not self._uow.folders.exists(folder_id):
            logger.warning("Failed to delete folder {} - not found", folder_id)
            return False
        if not self._uow.folders.can_delete_folder(folder_id):
            raise EntityValidationError("Cannot delete a folder that contains files or subfolders")
        with self._logged("delete", folder_id=folder_id):
            return self._uow.folders.soft_delete(folder_id)
