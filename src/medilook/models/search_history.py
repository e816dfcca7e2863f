"""Search history data models."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from medilook.models.medicine import Medicine


class SearchHistoryEntry(BaseModel):
    """One past query and a snapshot of the medicines it returned."""

    id: UUID = Field(default_factory=uuid4)
    query: str
    timestamp: datetime = Field(default_factory=datetime.now)
    results: list[Medicine] = []

    def matches(self, query: str) -> bool:
        """Case-insensitive comparison against another query string."""
        return self.query.lower() == query.lower()
