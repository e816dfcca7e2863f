"""Observable state of the current search."""

from enum import Enum

from pydantic import BaseModel

from medilook.models.medicine import Medicine


class SearchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


class SearchState(BaseModel):
    """Snapshot published to subscribers after every transition."""

    status: SearchStatus = SearchStatus.IDLE
    query: str = ""
    results: list[Medicine] = []
    error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is SearchStatus.LOADING
