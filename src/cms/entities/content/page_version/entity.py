"""PageVersion domain entity."""

import json
from typing import Any

from pydantic import Field

from src.cms.entities.core._base import Entity


class PageVersion(Entity):
    """A numbered snapshot of a page's content fields, stored as JSON."""

    page_id: int
    version_number: int = Field(ge=1)
    data: str = Field(description="JSON snapshot of the page")
    change_notes: str | None = Field(default=None, max_length=1000)

    @property
    def snapshot(self) -> dict[str, Any]:
        return json.loads(self.data)
