"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

from grant_matching.cache import InMemoryMatchStore, MatchCache
from grant_matching.models import EnrichmentBatch, EnrichmentResult, Grant, TokenUsage, UserProfile

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for cache and pipeline tests."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class StaticEnricher:
    """Returns a canned enrichment for every requested grant."""

    name = "static_enricher"

    def __init__(self, fit_score: int = 90, usage: TokenUsage = None):
        self.fit_score = fit_score
        self.usage = usage or TokenUsage(prompt_tokens=100, completion_tokens=50, total_tokens=150)
        self.calls: List[List[str]] = []

    async def enrich(self, profile: UserProfile, grants: List[Grant]) -> EnrichmentBatch:
        self.calls.append([grant.id for grant in grants])
        results: Dict[str, EnrichmentResult] = {
            grant.id: EnrichmentResult(
                fit_score=self.fit_score,
                fit_summary=f"Good fit for {grant.title}",
                fit_explanation="Matches your focus areas.",
                eligibility_status="likely_eligible",
                next_steps=["Register on the portal", "Draft a budget"],
                what_you_can_fund=["Equipment"],
                application_tips=["Apply early"],
                urgency="medium",
            )
            for grant in grants
        }
        return EnrichmentBatch(results=results, usage=self.usage)


class FailingEnricher:
    name = "failing_enricher"

    def __init__(self):
        self.calls = 0

    async def enrich(self, profile, grants):
        self.calls += 1
        raise RuntimeError("enrichment service exploded")


class SlowEnricher:
    name = "slow_enricher"

    def __init__(self, delay: float = 5.0):
        self.delay = delay
        self.cancelled = False

    async def enrich(self, profile, grants):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return EnrichmentBatch()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return InMemoryMatchStore()


@pytest.fixture
def match_cache(memory_store, clock):
    return MatchCache(memory_store, ttl_days=7, clock=clock)


@pytest.fixture
def make_grant():
    """Factory for open, national, URL-bearing grants."""

    def _make(**overrides) -> Grant:
        data = {
            "id": "grant-1",
            "title": "Rural Farm Equipment Grant",
            "sponsor": "USDA Rural Development",
            "summary": "Funding for farmers to buy agricultural equipment.",
            "categories": ["Agriculture"],
            "eligibility": {"tags": []},
            "locations": [],
            "url": "https://example.gov/apply",
            "amount_min": 5_000,
            "amount_max": 40_000,
            "updated_at": datetime(2025, 5, 1, tzinfo=timezone.utc),
        }
        data.update(overrides)
        return Grant(**data)

    return _make


@pytest.fixture
def make_profile():
    def _make(**overrides) -> UserProfile:
        data = {
            "user_id": "user-1",
            "entity_type": "small_business",
            "state": "CA",
            "industry_tags": ["agriculture"],
            "annual_budget": "under_50k",
            "profile_version": 1,
        }
        data.update(overrides)
        return UserProfile(**data)

    return _make


@pytest.fixture
def farm_profile(make_profile):
    return make_profile()


@pytest.fixture
def static_enricher():
    return StaticEnricher()


@pytest.fixture
def failing_enricher():
    return FailingEnricher()


@pytest.fixture
def slow_enricher():
    return SlowEnricher()
