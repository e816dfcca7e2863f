"""Unit tests for SearchOrchestrator."""

import asyncio

import pytest

from medilook.constants import NO_CANDIDATES_MESSAGE
from medilook.models.medicine import Medicine
from medilook.models.search_state import SearchState, SearchStatus
from medilook.services.search_orchestrator import SearchOrchestrator


class FakeLookupClient:
    """Stands in for DrugLookupClient; records every query it receives."""

    def __init__(
        self,
        results: dict[str, list[str]] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.results = results or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[str] = []

    async def search(self, query: str) -> list[Medicine]:
        self.calls.append(query)
        await asyncio.sleep(self.delays.get(query, 0))
        if query in self.errors:
            raise self.errors[query]
        return [Medicine(name=name) for name in self.results.get(query, [])]


def _orchestrator(client, history, debounce: float = 0.01) -> SearchOrchestrator:
    return SearchOrchestrator(client, history, debounce_seconds=debounce)


@pytest.mark.asyncio
class TestSearch:
    async def test_success_publishes_results_and_records_history(self, history):
        client = FakeLookupClient(results={"Advil": ["Advil", "Advil Migraine"]})
        orchestrator = _orchestrator(client, history)
        seen: list[SearchState] = []
        orchestrator.subscribe(seen.append)

        state = await orchestrator.search("Advil")

        assert state.status is SearchStatus.SUCCESS
        assert [m.name for m in state.results] == ["Advil", "Advil Migraine"]
        assert state.error is None
        assert [s.status for s in seen] == [SearchStatus.LOADING, SearchStatus.SUCCESS]
        assert seen[0].is_loading and not seen[1].is_loading
        assert orchestrator.current_state() == state
        assert history.entries[0].query == "Advil"
        assert [m.name for m in history.entries[0].results] == ["Advil", "Advil Migraine"]

    async def test_empty_query_resets_without_lookup(self, history):
        client = FakeLookupClient(results={"Advil": ["Advil"]})
        orchestrator = _orchestrator(client, history)
        await orchestrator.search("Advil")

        state = await orchestrator.search("")

        assert state.status is SearchStatus.IDLE
        assert state.results == []
        assert client.calls == ["Advil"]

    async def test_no_results_publishes_empty_message(self, history):
        orchestrator = _orchestrator(FakeLookupClient(), history)

        state = await orchestrator.search("Nothing")

        assert state.status is SearchStatus.EMPTY
        assert state.error == "No results found for 'Nothing'"
        assert state.results == []
        assert len(history) == 0

    async def test_unexpected_error_publishes_failure(self, history):
        client = FakeLookupClient(errors={"Advil": RuntimeError("boom")})
        orchestrator = _orchestrator(client, history)

        state = await orchestrator.search("Advil")

        assert state.status is SearchStatus.FAILED
        assert state.error == "Error searching for medication: boom"
        assert not orchestrator.current_state().is_loading

    async def test_new_search_clears_previous_error(self, history):
        client = FakeLookupClient(results={"Advil": ["Advil"]})
        orchestrator = _orchestrator(client, history)
        await orchestrator.search("Nothing")
        seen: list[SearchState] = []
        orchestrator.subscribe(seen.append)

        await orchestrator.search("Advil")

        assert seen[0].status is SearchStatus.LOADING
        assert seen[0].error is None

    async def test_superseded_result_is_dropped(self, history):
        client = FakeLookupClient(
            results={"slow": ["Slow"], "fast": ["Fast"]}, delays={"slow": 0.05}
        )
        orchestrator = _orchestrator(client, history)

        slow = asyncio.create_task(orchestrator.search("slow"))
        await asyncio.sleep(0)
        await orchestrator.search("fast")
        await slow

        assert orchestrator.current_state().query == "fast"
        assert [m.name for m in orchestrator.current_state().results] == ["Fast"]
        assert [e.query for e in history.entries] == ["fast"]

    async def test_reset_discards_in_flight_result(self, history):
        client = FakeLookupClient(results={"slow": ["Slow"]}, delays={"slow": 0.05})
        orchestrator = _orchestrator(client, history)

        task = asyncio.create_task(orchestrator.search("slow"))
        await asyncio.sleep(0)
        orchestrator.reset()
        await task

        assert orchestrator.current_state().status is SearchStatus.IDLE
        assert len(history) == 0

    async def test_failing_listener_does_not_break_search(self, history):
        client = FakeLookupClient(results={"Advil": ["Advil"]})
        orchestrator = _orchestrator(client, history)
        seen: list[SearchState] = []

        def broken(state: SearchState) -> None:
            raise RuntimeError("listener bug")

        orchestrator.subscribe(broken)
        orchestrator.subscribe(seen.append)
        state = await orchestrator.search("Advil")

        assert state.status is SearchStatus.SUCCESS
        assert orchestrator.current_state() == state
        assert [s.status for s in seen] == [SearchStatus.LOADING, SearchStatus.SUCCESS]
        assert history.entries[0].query == "Advil"

    async def test_unsubscribe(self, history):
        orchestrator = _orchestrator(FakeLookupClient(), history)
        seen: list[SearchState] = []
        unsubscribe = orchestrator.subscribe(seen.append)

        unsubscribe()
        await orchestrator.search("Advil")

        assert seen == []


@pytest.mark.asyncio
class TestSubmit:
    async def test_debounce_only_last_query_dispatched(self, history):
        client = FakeLookupClient(results={"amox": ["Amoxil"]})
        orchestrator = _orchestrator(client, history)

        first = orchestrator.submit("a")
        second = orchestrator.submit("am")
        last = orchestrator.submit("amox")
        state = await last
        await asyncio.sleep(0)

        assert client.calls == ["amox"]
        assert first.cancelled() and second.cancelled()
        assert state.status is SearchStatus.SUCCESS

    async def test_empty_submit_cancels_pending(self, history):
        client = FakeLookupClient(results={"Advil": ["Advil"]})
        orchestrator = _orchestrator(client, history)

        pending = orchestrator.submit("Advil")
        assert orchestrator.submit("") is None
        await asyncio.sleep(0.03)

        assert pending.cancelled()
        assert client.calls == []
        assert orchestrator.current_state().status is SearchStatus.IDLE

    async def test_direct_search_supersedes_pending_submit(self, history):
        client = FakeLookupClient(results={"Advil": ["Advil"], "Tylenol": ["Tylenol"]})
        orchestrator = _orchestrator(client, history)

        pending = orchestrator.submit("Advil")
        await orchestrator.search("Tylenol")
        await asyncio.sleep(0.03)

        assert pending.cancelled()
        assert client.calls == ["Tylenol"]


@pytest.mark.asyncio
class TestSearchPrescription:
    async def test_extracted_names_are_looked_up(self, history):
        client = FakeLookupClient(results={"Amoxicillin": ["Amoxil"]})
        orchestrator = _orchestrator(client, history)
        text = "Patient Name: John Doe\nRx: Amoxicillin 500mg tid\nDate: 2024-01-01"

        state = await orchestrator.search_prescription([text])

        assert client.calls == ["Amoxicillin"]
        assert state.status is SearchStatus.SUCCESS
        assert [m.name for m in state.results] == ["Amoxil"]
        assert history.entries[0].query == "Amoxicillin"

    async def test_each_candidate_recorded_separately(self, history):
        client = FakeLookupClient(
            results={"Amoxicillin": ["Amoxil"], "Ibuprofen": ["Advil"]}
        )
        orchestrator = _orchestrator(client, history)

        state = await orchestrator.search_prescription(
            ["Rx: Amoxicillin 500mg\nRx: Ibuprofen 200mg\nRx: Unknownium 5mg"]
        )

        assert sorted(client.calls) == ["Amoxicillin", "Ibuprofen", "Unknownium"]
        assert sorted(m.name for m in state.results) == ["Advil", "Amoxil"]
        assert sorted(e.query for e in history.entries) == ["Amoxicillin", "Ibuprofen"]

    async def test_no_candidates(self, history):
        client = FakeLookupClient()
        orchestrator = _orchestrator(client, history)

        state = await orchestrator.search_prescription(["Amoxicillin 500mg tid"])

        assert state.status is SearchStatus.FAILED
        assert state.error == NO_CANDIDATES_MESSAGE
        assert client.calls == []

    async def test_no_results_for_any_candidate(self, history):
        orchestrator = _orchestrator(FakeLookupClient(), history)

        state = await orchestrator.search_prescription(["Rx: Unknownium 5mg"])

        assert state.status is SearchStatus.EMPTY
        assert state.error == "No results found for 'Unknownium'"

    async def test_all_lookups_failing(self, history):
        client = FakeLookupClient(errors={"Unknownium": RuntimeError("offline")})
        orchestrator = _orchestrator(client, history)

        state = await orchestrator.search_prescription(["Rx: Unknownium 5mg"])

        assert state.status is SearchStatus.FAILED
        assert state.error == "Error searching for medication: offline"
