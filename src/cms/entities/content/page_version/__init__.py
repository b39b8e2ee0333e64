"""Entity package: PageVersion."""

from .entity import PageVersion
from .repository import PageVersionRepository
from .table import PageVersionTable

__all__ = ["PageVersion", "PageVersionRepository", "PageVersionTable"]
