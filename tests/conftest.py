"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from medilook.services.search_history import JsonFileHistoryStore, SearchHistoryCache


@pytest.fixture
def ibuprofen_label() -> dict:
    """Label record with two brand names sharing one generic name."""
    return {
        "openfda": {
            "brand_name": ["Advil", "Motrin"],
            "generic_name": ["Ibuprofen"],
            "product_type": ["HUMAN OTC DRUG"],
            "rxcui": ["310965"],
        },
        "indications_and_usage": [
            "Uses temporarily relieves minor aches and pains. Temporarily reduces fever."
        ],
        "dosage_and_administration": [
            "Adults: take 1 tablet every 4 to 6 hours while symptoms persist. "
            "Do not take more than 6 tablets in 24 hours."
        ],
        "warnings": ["Allergy alert: Ibuprofen may cause a severe allergic reaction."],
        "adverse_reactions": [
            "The following adverse reactions were reported: nausea, headache; dizziness."
        ],
    }


@pytest.fixture
def acetaminophen_label() -> dict:
    """Prescription label with sparse sections."""
    return {
        "openfda": {
            "brand_name": ["Tylenol"],
            "generic_name": ["Acetaminophen"],
            "product_type": ["HUMAN PRESCRIPTION DRUG"],
        },
        "purpose": ["Pain reliever/fever reducer. Keep out of reach of children."],
    }


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "search_history.json"


@pytest.fixture
def history(history_path: Path) -> SearchHistoryCache:
    """Search history backed by a temporary JSON file."""
    return SearchHistoryCache(JsonFileHistoryStore(history_path))
