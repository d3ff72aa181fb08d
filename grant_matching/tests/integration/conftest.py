"""Integration test fixtures: stored grant rows and a wired discovery pipeline."""

import json
from pathlib import Path

import pytest

from grant_matching.discovery import DiscoveryPipeline

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _load_json(name: str):
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


@pytest.fixture
def grant_rows():
    """Grant rows in their storage shape (JSON text columns, string amounts)."""
    return _load_json("grant_rows.json")


@pytest.fixture
def row_by_id(grant_rows):
    def _get(grant_id: str) -> dict:
        return next(row for row in grant_rows if row["id"] == grant_id)

    return _get


@pytest.fixture
def discovery(match_cache, static_enricher, clock):
    return DiscoveryPipeline(cache=match_cache, enricher=static_enricher, clock=clock)
