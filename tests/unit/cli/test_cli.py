"""Unit tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from medilook.cli.cli import main
from medilook.config import get_settings
from medilook.models.medicine import Medicine


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch):
    """Point the history blob at a temp file and reset cached settings."""
    monkeypatch.setenv("HISTORY_PATH", str(tmp_path / "history.json"))
    monkeypatch.setenv("OPENFDA_API_KEY", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def lookup():
    with patch(
        "medilook.cli.cli.DrugLookupClient.search",
        new_callable=AsyncMock,
        return_value=[Medicine(name="Advil", alternatives=["Ibuprofen"])],
    ) as mock:
        yield mock


def test_search_prints_results(lookup):
    result = CliRunner().invoke(main, ["search", "Advil"])

    assert result.exit_code == 0, result.output
    assert "Advil" in result.output
    assert "Alternatives: Ibuprofen" in result.output
    lookup.assert_awaited_once_with("Advil")


def test_search_json_output(lookup, tmp_path: Path):
    output = tmp_path / "out.json"

    result = CliRunner().invoke(main, ["search", "Advil", "--json", "-o", str(output)])

    assert result.exit_code == 0, result.output
    saved = json.loads(output.read_text())
    assert saved["status"] == "success"
    assert saved["results"][0]["name"] == "Advil"


def test_search_records_history(lookup):
    runner = CliRunner()
    runner.invoke(main, ["search", "Advil"])

    result = runner.invoke(main, ["history"])

    assert "Advil  ->  Advil" in result.output


def test_history_clear(lookup):
    runner = CliRunner()
    runner.invoke(main, ["search", "Advil"])

    runner.invoke(main, ["history", "--clear"])
    result = runner.invoke(main, ["history"])

    assert "No searches yet." in result.output


def test_scan_without_candidates_fails(lookup, tmp_path: Path):
    text_file = tmp_path / "ocr.txt"
    text_file.write_text("Patient Name: John Doe\nDate: 2024-01-01\n")

    result = CliRunner().invoke(main, ["scan", str(text_file)])

    assert result.exit_code == 1
    lookup.assert_not_awaited()


def test_scan_looks_up_extracted_names(lookup, tmp_path: Path):
    text_file = tmp_path / "ocr.txt"
    text_file.write_text("Patient Name: John Doe\nRx: Advil 200mg\n")

    result = CliRunner().invoke(main, ["scan", str(text_file)])

    assert result.exit_code == 0, result.output
    lookup.assert_awaited_once_with("Advil")
