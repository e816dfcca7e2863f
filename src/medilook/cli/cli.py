"""Command-line interface for MediLook."""

import asyncio
import json
import logging
from pathlib import Path

import click

from medilook.config import get_settings
from medilook.data_sources.openfda_label import DrugLookupClient
from medilook.models.medicine import Medicine
from medilook.models.search_state import SearchState, SearchStatus
from medilook.services.search_history import JsonFileHistoryStore, SearchHistoryCache
from medilook.services.search_orchestrator import SearchOrchestrator


def _history() -> SearchHistoryCache:
    settings = get_settings()
    return SearchHistoryCache(
        JsonFileHistoryStore(settings.history_path),
        capacity=settings.history_capacity,
    )


async def _run(query: str | None = None, ocr_lines: list[str] | None = None) -> SearchState:
    async with DrugLookupClient() as client:
        orchestrator = SearchOrchestrator(
            client, _history(), debounce_seconds=get_settings().debounce_seconds
        )
        if ocr_lines is not None:
            return await orchestrator.search_prescription(ocr_lines)
        return await orchestrator.search(query or "")


def _echo_medicine(i: int, medicine: Medicine) -> None:
    rx = "prescription" if medicine.requires_prescription else "over the counter"
    click.echo(f"  {i}. {medicine.name} ({rx})")
    click.echo(f"     {medicine.description}")
    if medicine.alternatives:
        click.echo(f"     Alternatives: {', '.join(medicine.alternatives)}")
    click.echo(f"     Dosage: {medicine.dosage}")
    click.echo(f"     Side effects: {', '.join(medicine.side_effects)}")


def _report(state: SearchState, as_json: bool, output: str | None) -> None:
    payload = state.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(payload, indent=2))
    elif state.status is SearchStatus.SUCCESS:
        click.echo(f"Results for: {state.query}")
        for i, medicine in enumerate(state.results, 1):
            _echo_medicine(i, medicine)
    elif state.error:
        click.echo(state.error, err=True)

    if output:
        Path(output).write_text(json.dumps(payload, indent=2))
        click.echo(f"\nResults saved to: {output}")

    if state.status is not SearchStatus.SUCCESS:
        raise SystemExit(1)


@click.group()
@click.version_option(package_name="medilook")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
def main(verbose: bool):
    """MediLook: look up medicines in the openFDA drug label database."""
    level = "DEBUG" if verbose or get_settings().debug else get_settings().log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")


@main.command()
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Print the result state as JSON")
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def search(query: str, as_json: bool, output: str | None):
    """Look up a medicine by brand or generic name."""
    _report(asyncio.run(_run(query=query)), as_json, output)


@main.command()
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the result state as JSON")
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def scan(text_file: str, as_json: bool, output: str | None):
    """Find and look up medicines in recognised prescription text.

    TEXT_FILE holds one OCR text region per line.
    """
    lines = Path(text_file).read_text(encoding="utf-8").splitlines()
    _report(asyncio.run(_run(ocr_lines=lines)), as_json, output)


@main.command()
@click.option("--clear", is_flag=True, help="Delete all saved searches")
def history(clear: bool):
    """Show or clear past searches, most recent first."""
    cache = _history()
    if clear:
        cache.clear()
        click.echo("Search history cleared.")
        return
    if not len(cache):
        click.echo("No searches yet.")
        return
    for entry in cache.entries:
        names = ", ".join(m.name for m in entry.results)
        click.echo(f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.query}  ->  {names}")


if __name__ == "__main__":
    main()
