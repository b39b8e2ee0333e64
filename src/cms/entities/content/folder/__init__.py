"""Entity package: Folder."""

from .entity import Folder, FolderType, build_path
from .repository import FolderRepository
from .table import FolderTable

__all__ = ["Folder", "FolderType", "FolderRepository", "FolderTable", "build_path"]
