"""
Search orchestration: debouncing, observable state, and history recording.

Every search moves the published state through
``IDLE -> LOADING -> SUCCESS | EMPTY | FAILED``. Each new search takes a
fresh generation number; a search whose generation is no longer current
when its lookup returns is dropped instead of overwriting newer state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Protocol

from medilook.constants import (
    NO_CANDIDATES_MESSAGE,
    NO_RESULTS_MESSAGE,
    SEARCH_DEBOUNCE_SECONDS,
    SEARCH_ERROR_MESSAGE,
)
from medilook.models.medicine import Medicine
from medilook.models.search_state import SearchState, SearchStatus
from medilook.services.name_extractor import (
    extract_medicine_names,
    join_ocr_text,
    searchable_candidates,
)
from medilook.services.search_history import SearchHistoryCache

logger = logging.getLogger(__name__)

Listener = Callable[[SearchState], None]


class MedicineSearcher(Protocol):
    async def search(self, query: str) -> list[Medicine]: ...


class SearchOrchestrator:
    """Single owner of the current search state and of the search history.

    All state changes happen on the event loop that drives the orchestrator
    and are committed under one lock.
    """

    def __init__(
        self,
        client: MedicineSearcher,
        history: SearchHistoryCache,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
    ) -> None:
        self.client = client
        self.history = history
        self.debounce_seconds = debounce_seconds
        self._state = SearchState()
        self._listeners: list[Listener] = []
        self._generation = 0
        self._pending: asyncio.Task[SearchState | None] | None = None
        self._lock = asyncio.Lock()

    # -- Observation ------------------------------------------------------------

    def current_state(self) -> SearchState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: SearchState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Search state listener %r failed", listener)

    # -- Entry points -----------------------------------------------------------

    def submit(self, query: str) -> asyncio.Task[SearchState | None] | None:
        """Debounced search for live typing.

        Cancels any pending, not yet dispatched search and schedules this one
        after ``debounce_seconds`` of quiet. Must be called from a running
        event loop. An empty query resets the state immediately.
        """
        self.cancel_pending()
        token = self._next_generation()
        if not query.strip():
            self._publish(SearchState())
            return None
        self._pending = asyncio.get_running_loop().create_task(
            self._debounced(query, token)
        )
        return self._pending

    async def search(self, query: str) -> SearchState:
        """Run a search immediately, superseding any pending or in-flight one."""
        self.cancel_pending()
        return await self._run_search(query, self._next_generation())

    async def search_prescription(self, ocr_lines: Iterable[str]) -> SearchState:
        """Extract medicine names from OCR text and look each one up in turn."""
        self.cancel_pending()
        token = self._next_generation()

        names = searchable_candidates(extract_medicine_names(join_ocr_text(ocr_lines)))
        if not names:
            state = SearchState(status=SearchStatus.FAILED, error=NO_CANDIDATES_MESSAGE)
            self._publish(state)
            return state

        query = ", ".join(names)
        self._begin(query)

        found: list[tuple[str, list[Medicine]]] = []
        last_error: Exception | None = None
        for name in names:
            try:
                results = await self.client.search(name)
            except Exception as e:
                logger.warning("Lookup for candidate %r failed: %s", name, e)
                last_error = e
                continue
            if results:
                found.append((name, results))

        combined = [m for _, results in found for m in results]
        if combined:
            state = SearchState(
                status=SearchStatus.SUCCESS, query=query, results=combined
            )
        elif last_error is not None:
            state = self._failed(query, last_error)
        else:
            state = self._empty(query)

        async with self._lock:
            if not self._is_current(token):
                return state
            for name, results in found:
                self.history.record(name, results)
            self._publish(state)
        return state

    def cancel_pending(self) -> None:
        """Cancel a debounced search that has not fired yet."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def reset(self) -> None:
        """Return to IDLE and discard any in-flight result."""
        self.cancel_pending()
        self._next_generation()
        self._publish(SearchState())

    # -- Internals --------------------------------------------------------------

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, token: int) -> bool:
        if token != self._generation:
            logger.debug("Dropping superseded search (generation %d)", token)
            return False
        return True

    def _begin(self, query: str) -> None:
        self._publish(
            SearchState(
                status=SearchStatus.LOADING, query=query, results=self._state.results
            )
        )

    @staticmethod
    def _empty(query: str) -> SearchState:
        return SearchState(
            status=SearchStatus.EMPTY,
            query=query,
            error=NO_RESULTS_MESSAGE.format(query=query),
        )

    @staticmethod
    def _failed(query: str, error: Exception) -> SearchState:
        return SearchState(
            status=SearchStatus.FAILED,
            query=query,
            error=SEARCH_ERROR_MESSAGE.format(error=error),
        )

    async def _debounced(self, query: str, token: int) -> SearchState | None:
        await asyncio.sleep(self.debounce_seconds)
        if not self._is_current(token):
            return None
        return await self._run_search(query, token)

    async def _run_search(self, query: str, token: int) -> SearchState:
        if not query.strip():
            state = SearchState()
            self._publish(state)
            return state

        self._begin(query)
        try:
            results = await self.client.search(query)
        except Exception as e:
            logger.exception("Search for %r failed", query)
            state = self._failed(query, e)
        else:
            if results:
                state = SearchState(
                    status=SearchStatus.SUCCESS, query=query, results=results
                )
            else:
                state = self._empty(query)

        async with self._lock:
            if not self._is_current(token):
                return state
            if state.status is SearchStatus.SUCCESS:
                self.history.record(query, results)
            self._publish(state)
        return state
