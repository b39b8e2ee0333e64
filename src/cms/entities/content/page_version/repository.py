from sqlalchemy import func
from sqlmodel import select

from src.cms.entities.core.repository import SoftDeleteRepository

from .entity import PageVersion
from .table import PageVersionTable


class PageVersionRepository(SoftDeleteRepository[PageVersion, PageVersionTable]):
    """Data-access layer for page versions."""

    entity_model = PageVersion
    table_model = PageVersionTable

    _newest_first = PageVersionTable.version_number.desc()

    def get_versions_by_page(self, page_id: int) -> list[PageVersion]:
        return self.find(PageVersionTable.page_id == page_id, order_by=self._newest_first)

    def get_latest_version(self, page_id: int) -> PageVersion | None:
        return self.first_or_default(
            PageVersionTable.page_id == page_id, order_by=self._newest_first
        )

    def get_page_version(self, page_id: int, version_id: int) -> PageVersion | None:
        """The version, only when it belongs to ``page_id``."""
        return self.first_or_default(
            PageVersionTable.id == version_id, PageVersionTable.page_id == page_id
        )

    def get_next_version_number(self, page_id: int) -> int:
        # Deleted versions keep their number; (page_id, version_number) is unique.
        statement = select(func.max(PageVersionTable.version_number)).where(
            PageVersionTable.page_id == page_id
        )
        current = self._session.exec(statement).one()
        return 1 if current is None else current + 1
