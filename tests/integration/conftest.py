"""Shared fixtures for integration tests."""

import pytest

from medilook.data_sources.openfda_label import DrugLookupClient


@pytest.fixture
async def drug_lookup_client():
    """Create and tear down a DrugLookupClient against the live API."""
    c = DrugLookupClient()
    yield c
    await c.close()
