"""Folder repository.

Folders keep a materialised ``path`` (``parent.path + "/" + name``). Any
operation that changes a folder's name or parent rewrites the path of the
folder and of every folder below it, soft-deleted ones included, so a later
restore lands in a consistent place.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy import func
from sqlmodel import select

from src.cms.core.exceptions import EntityValidationError, HierarchyError
from src.cms.entities.content.file.table import FileTable
from src.cms.entities.core.repository import SoftDeleteRepository, contains_ci

from .entity import MAX_PATH_LENGTH, PATH_SEPARATOR, Folder, FolderType, build_path
from .table import FolderTable


class FolderRepository(SoftDeleteRepository[Folder, FolderTable]):
    """Data-access layer for the folder tree."""

    entity_model = Folder
    table_model = FolderTable

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_root_folders(self) -> list[Folder]:
        return self.find(FolderTable.parent_folder_id == None, order_by=FolderTable.name)  # noqa: E711

    def get_sub_folders(self, parent_folder_id: int) -> list[Folder]:
        return self.find(FolderTable.parent_folder_id == parent_folder_id, order_by=FolderTable.name)

    def get_by_path(self, path: str) -> Folder | None:
        return self.first_or_default(FolderTable.path == path.strip(PATH_SEPARATOR))

    def get_folders_by_type(self, folder_type: FolderType) -> list[Folder]:
        return self.find(FolderTable.folder_type == folder_type, order_by=FolderTable.path)

    def get_public_folders(self) -> list[Folder]:
        return self.find(FolderTable.is_public == True, order_by=FolderTable.path)  # noqa: E712

    def search_folders_by_name(self, term: str) -> list[Folder]:
        if not term or not term.strip():
            return []
        return self.find(contains_ci(FolderTable.name, term.strip()), order_by=FolderTable.path)

    def get_folders_by_user_id(self, user_id: int) -> list[Folder]:
        return self.find(FolderTable.user_id == user_id, order_by=FolderTable.path)

    def get_folders_by_date_range(self, start: datetime, end: datetime) -> list[Folder]:
        return self.find(
            FolderTable.created_at >= start,
            FolderTable.created_at <= end,
            order_by=FolderTable.created_at,
        )

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def is_path_unique(self, path: str, exclude_folder_id: int | None = None) -> bool:
        criteria = [FolderTable.path == path]
        if exclude_folder_id is not None:
            criteria.append(FolderTable.id != exclude_folder_id)
        return not self.any(*criteria)

    def generate_unique_path(self, base_name: str, parent_folder_id: int | None = None) -> str:
        """Path for ``base_name`` under the parent, suffixed ``_1``, ``_2``... until unique."""
        parent_path = None
        if parent_folder_id is not None:
            parent = self._get_row(parent_folder_id)
            if parent is None:
                raise EntityValidationError(f"Parent folder {parent_folder_id} not found")
            parent_path = parent.path

        candidate = build_path(parent_path, base_name)
        suffix = 0
        while not self.is_path_unique(candidate):
            suffix += 1
            candidate = build_path(parent_path, f"{base_name}_{suffix}")
        return candidate

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------

    def has_sub_folders(self, folder_id: int) -> bool:
        return self.any(FolderTable.parent_folder_id == folder_id)

    def has_files(self, folder_id: int) -> bool:
        statement = select(FileTable.id).where(
            FileTable.folder_id == folder_id,
            FileTable.is_deleted == False,  # noqa: E712
        )
        return self._session.exec(statement.limit(1)).first() is not None

    def _folder_scope(self, folder_id: int, include_subfolders: bool) -> list[int]:
        folder_ids = [folder_id]
        if include_subfolders:
            folder_ids.extend(row.id for row in self._descendant_rows(folder_id))
        return folder_ids

    def get_total_file_count(self, folder_id: int, include_subfolders: bool = False) -> int:
        statement = select(func.count()).select_from(FileTable).where(
            FileTable.folder_id.in_(self._folder_scope(folder_id, include_subfolders)),
            FileTable.is_deleted == False,  # noqa: E712
        )
        return self._session.exec(statement).one()

    def get_total_size(self, folder_id: int, include_subfolders: bool = False) -> int:
        statement = select(func.coalesce(func.sum(FileTable.file_size), 0)).where(
            FileTable.folder_id.in_(self._folder_scope(folder_id, include_subfolders)),
            FileTable.is_deleted == False,  # noqa: E712
        )
        return int(self._session.exec(statement).one())

    def get_empty_folders(self) -> list[Folder]:
        """Live folders with neither live files nor live subfolders."""
        child = FolderTable.__table__.alias("child")
        has_child = (
            select(child.c.id)
            .where(child.c.parent_folder_id == FolderTable.id, child.c.is_deleted == False)  # noqa: E712
            .exists()
        )
        has_file = (
            select(FileTable.id)
            .where(FileTable.folder_id == FolderTable.id, FileTable.is_deleted == False)  # noqa: E712
            .exists()
        )
        return self.find(~has_child, ~has_file, order_by=FolderTable.path)

    def can_delete_folder(self, folder_id: int) -> bool:
        return not self.has_files(folder_id) and not self.has_sub_folders(folder_id)

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    def _descendant_rows(self, folder_id: int, include_deleted: bool = False) -> list[FolderTable]:
        rows: list[FolderTable] = []
        seen = {folder_id}
        frontier = [folder_id]
        while frontier:
            children = self._session.exec(
                self._select(
                    FolderTable.parent_folder_id.in_(frontier), include_deleted=include_deleted
                ).order_by(FolderTable.path)
            ).all()
            children = [row for row in children if row.id not in seen]
            seen.update(row.id for row in children)
            rows.extend(children)
            frontier = [row.id for row in children]
        return rows

    def get_descendants(self, folder_id: int) -> list[Folder]:
        return self._to_entities(self._descendant_rows(folder_id))

    def get_ancestors(self, folder_id: int) -> list[Folder]:
        """Ancestors of the folder, root first."""
        ancestors: list[FolderTable] = []
        seen = {folder_id}
        current = self._get_row(folder_id, include_deleted=True)
        while current is not None and current.parent_folder_id is not None:
            if current.parent_folder_id in seen:
                break
            seen.add(current.parent_folder_id)
            current = self._get_row(current.parent_folder_id, include_deleted=True)
            if current is not None:
                ancestors.append(current)
        ancestors.reverse()
        return self._to_entities(ancestors)

    def get_depth(self, folder_id: int) -> int:
        """Number of ancestors; root folders have depth 0."""
        return len(self.get_ancestors(folder_id))

    def is_descendant_of(self, folder_id: int, ancestor_id: int) -> bool:
        return any(folder.id == ancestor_id for folder in self.get_ancestors(folder_id))

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def _relocate(self, row: FolderTable, new_path: str) -> None:
        """Give ``row`` a new path and carry the change down to its subtree."""
        if len(new_path) > MAX_PATH_LENGTH:
            raise EntityValidationError(f"Folder path exceeds {MAX_PATH_LENGTH} characters")
        if not self.is_path_unique(new_path, exclude_folder_id=row.id):
            raise EntityValidationError(f"A folder with path '{new_path}' already exists")

        old_prefix = row.path + PATH_SEPARATOR
        new_prefix = new_path + PATH_SEPARATOR
        for descendant in self._descendant_rows(row.id, include_deleted=True):
            if descendant.path.startswith(old_prefix):
                descendant.path = new_prefix + descendant.path[len(old_prefix):]
            else:
                # Path drifted from its parent chain; rebuild from scratch.
                descendant.path = new_prefix + descendant.name
            if len(descendant.path) > MAX_PATH_LENGTH:
                raise EntityValidationError(f"Folder path exceeds {MAX_PATH_LENGTH} characters")
            self._stamp_updated(descendant)
            self._session.add(descendant)

        row.path = new_path
        self._stamp_updated(row)
        self._session.add(row)

    def move_folder(self, folder_id: int, new_parent_id: int | None) -> bool:
        """Re-parent a folder; ``new_parent_id=None`` moves it to the root.

        Raises HierarchyError when the target is the folder itself or one of
        its descendants. Returns False when either folder does not exist.
        """
        if new_parent_id is not None and new_parent_id == folder_id:
            raise HierarchyError("A folder cannot be moved into itself")

        def operation() -> bool:
            row = self._get_row(folder_id)
            if row is None:
                logger.warning("Folder {} not found for move", folder_id)
                return False

            parent_path = None
            if new_parent_id is not None:
                parent = self._get_row(new_parent_id)
                if parent is None:
                    logger.warning("Target folder {} not found for move", new_parent_id)
                    return False
                if self.is_descendant_of(new_parent_id, folder_id):
                    raise HierarchyError("A folder cannot be moved into one of its descendants")
                parent_path = parent.path

            row.parent_folder_id = new_parent_id
            self._relocate(row, build_path(parent_path, row.name))
            self._session.flush()
            return True

        moved = self.execute_in_transaction(operation)
        if moved:
            logger.info("Moved folder {} under {}", folder_id, new_parent_id)
        return moved

    def rename_folder(self, folder_id: int, new_name: str) -> bool:
        if not new_name or not new_name.strip() or PATH_SEPARATOR in new_name:
            raise EntityValidationError("Folder name must be non-empty and cannot contain '/'")
        new_name = new_name.strip()

        def operation() -> bool:
            row = self._get_row(folder_id)
            if row is None:
                logger.warning("Folder {} not found for rename", folder_id)
                return False
            parent_path = None
            if row.parent_folder_id is not None:
                parent = self._get_row(row.parent_folder_id, include_deleted=True)
                parent_path = parent.path if parent is not None else None
            row.name = new_name
            self._relocate(row, build_path(parent_path, new_name))
            self._session.flush()
            return True

        return self.execute_in_transaction(operation)
