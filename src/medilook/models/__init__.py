"""Data models for MediLook."""

from medilook.models.medicine import Medicine
from medilook.models.search_history import SearchHistoryEntry
from medilook.models.search_state import SearchState, SearchStatus

__all__ = ["Medicine", "SearchHistoryEntry", "SearchState", "SearchStatus"]
