"""Tests for the discovery pipeline.

Covers:
  1. Deterministic-only runs (no enricher, use_ai off, enricher failures)
  2. Cache reuse, profile-version and grant-freshness invalidation
  3. Hard-filter and threshold fallback tiers with their messages
  4. Sorting, pagination and candidate limits
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from grant_matching.cache import MatchCache
from grant_matching.config import Settings
from grant_matching.discovery import DiscoveryPipeline, combine_scores, deadline_urgency, sort_ranked
from grant_matching.discovery.pipeline import (
    BELOW_THRESHOLD_MESSAGE,
    NO_GRANTS_MESSAGE,
    RELAXED_MESSAGE,
    score_distribution,
)
from grant_matching.models import DiscoveryOptions, MatchTier, SortBy

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
DETERMINISTIC_ONLY = DiscoveryOptions(use_ai=False)


def _settings(**overrides) -> Settings:
    return Settings(supabase_url="https://test.supabase.co", supabase_key="test-key", **overrides)


@pytest.fixture
def pipeline(match_cache, static_enricher, clock):
    return DiscoveryPipeline(cache=match_cache, enricher=static_enricher, clock=clock)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

class TestCombineScores:
    def test_weighted_blend_rounds_half_up(self):
        assert combine_scores(73, 90) == 80
        assert combine_scores(50, 51) == 50
        # 60*51 + 40*50 = 5060 -> 50.6
        assert combine_scores(51, 50) == 51
        assert combine_scores(100, 100) == 100
        assert combine_scores(0, 0) == 0

    def test_missing_ai_score_keeps_deterministic(self):
        assert combine_scores(73, None) == 73


class TestDeadlineUrgency:
    @pytest.mark.parametrize(
        "offset, expected",
        [
            (timedelta(days=5), "high"),
            (timedelta(days=14, hours=1), "high"),
            (timedelta(days=30), "medium"),
            (timedelta(days=45), "medium"),
            (timedelta(days=46), "low"),
            (timedelta(days=-3), "high"),
        ],
    )
    def test_buckets(self, offset, expected):
        assert deadline_urgency(NOW + offset, NOW) == expected

    def test_no_deadline_is_low(self):
        assert deadline_urgency(None, NOW) == "low"


def test_score_distribution_buckets():
    distribution = score_distribution([0, 20, 21, 60, 61, 73, 100])
    assert distribution == {"0-20": 2, "21-40": 1, "41-60": 1, "61-80": 2, "81-100": 1}


# ---------------------------------------------------------------------------
# Deterministic-only runs
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_deterministic_only_without_enricher(match_cache, clock, farm_profile, make_grant):
    pipeline = DiscoveryPipeline(cache=match_cache, clock=clock)

    result = await pipeline.discover(farm_profile, [make_grant()])

    assert result.total == 1
    ranked = result.grants[0]
    assert ranked.deterministic_score == 73
    assert ranked.ai_score is None
    assert ranked.combined_score == 73
    assert ranked.fit_summary is None
    assert ranked.next_steps == []
    assert result.stats.ai_enabled is False
    assert result.stats.filter_tier == MatchTier.STRICT
    assert result.stats.threshold_tier == MatchTier.STRICT
    assert result.message is None


@pytest.mark.asyncio
async def test_use_ai_false_never_calls_enricher(pipeline, static_enricher, memory_store, farm_profile, make_grant):
    result = await pipeline.discover(farm_profile, [make_grant()], DETERMINISTIC_ONLY)

    assert static_enricher.calls == []
    assert len(memory_store) == 0
    assert result.grants[0].ai_score is None
    assert result.stats.ai_enabled is False


@pytest.mark.asyncio
async def test_use_ai_false_still_serves_cache(pipeline, static_enricher, farm_profile, make_grant):
    await pipeline.discover(farm_profile, [make_grant()])
    grants = [make_grant(), make_grant(id="uncached")]

    result = await pipeline.discover(farm_profile, grants, DiscoveryOptions(use_ai=False, use_cache=True))

    assert len(static_enricher.calls) == 1
    by_id = {ranked.grant_id: ranked for ranked in result.grants}
    assert by_id["grant-1"].from_cache is True
    assert by_id["grant-1"].ai_score == 90
    assert by_id["grant-1"].fit_summary == "Good fit for Rural Farm Equipment Grant"
    assert by_id["uncached"].ai_score is None
    assert result.stats.from_cache == 1
    assert result.stats.from_ai == 0
    assert result.stats.ai_enabled is True


@pytest.mark.asyncio
async def test_failing_enricher_degrades_to_deterministic(match_cache, clock, failing_enricher, farm_profile, make_grant):
    pipeline = DiscoveryPipeline(cache=match_cache, enricher=failing_enricher, clock=clock)

    result = await pipeline.discover(farm_profile, [make_grant()])

    assert failing_enricher.calls == 1
    assert result.total == 1
    assert result.grants[0].combined_score == result.grants[0].deterministic_score
    assert result.stats.ai_enabled is False
    assert result.stats.from_ai == 0


@pytest.mark.asyncio
async def test_enrichment_timeout_degrades(match_cache, clock, slow_enricher, farm_profile, make_grant):
    pipeline = DiscoveryPipeline(
        cache=match_cache,
        enricher=slow_enricher,
        settings=_settings(enrichment_timeout_seconds=0.05),
        clock=clock,
    )

    result = await pipeline.discover(farm_profile, [make_grant()])
    await asyncio.sleep(0.01)

    assert slow_enricher.cancelled
    assert result.grants[0].ai_score is None
    assert result.stats.ai_enabled is False


@pytest.mark.asyncio
async def test_abort_skips_enrichment(pipeline, static_enricher, farm_profile, make_grant):
    abort = asyncio.Event()
    abort.set()

    result = await pipeline.discover(farm_profile, [make_grant()], abort=abort)

    assert static_enricher.calls == []
    assert result.total == 1
    assert result.grants[0].ai_score is None


# ---------------------------------------------------------------------------
# Enrichment and cache
# ---------------------------------------------------------------------------

class TestEnrichmentCache:
    @pytest.mark.asyncio
    async def test_first_call_enriches_second_reads_cache(self, pipeline, static_enricher, farm_profile, make_grant):
        grants = [make_grant()]

        first = await pipeline.discover(farm_profile, grants)
        second = await pipeline.discover(farm_profile, grants)

        assert static_enricher.calls == [["grant-1"]]

        assert first.stats.from_ai == 1
        assert first.stats.from_cache == 0
        assert first.stats.token_usage.total_tokens == 150
        assert first.grants[0].from_cache is False

        assert second.stats.from_ai == 0
        assert second.stats.from_cache == 1
        assert second.stats.ai_enabled is True
        assert second.stats.token_usage.total_tokens == 0
        assert second.grants[0].from_cache is True

        for result in (first, second):
            ranked = result.grants[0]
            assert ranked.ai_score == 90
            assert ranked.combined_score == 80
            assert ranked.next_steps == ["Register on the portal", "Draft a budget"]
            assert ranked.urgency == "medium"

    @pytest.mark.asyncio
    async def test_profile_version_bump_re_enriches(self, pipeline, static_enricher, make_profile, make_grant):
        grants = [make_grant()]

        await pipeline.discover(make_profile(profile_version=1), grants)
        result = await pipeline.discover(make_profile(profile_version=2), grants)

        assert len(static_enricher.calls) == 2
        assert result.stats.from_cache == 0
        assert result.stats.from_ai == 1

    @pytest.mark.asyncio
    async def test_updated_grant_is_cache_miss(self, pipeline, static_enricher, farm_profile, make_grant):
        await pipeline.discover(farm_profile, [make_grant()])
        updated = make_grant(updated_at=datetime(2025, 5, 20, tzinfo=timezone.utc))

        result = await pipeline.discover(farm_profile, [updated])

        assert len(static_enricher.calls) == 2
        assert result.stats.from_cache == 0

    @pytest.mark.asyncio
    async def test_only_misses_are_sent_to_enricher(self, pipeline, static_enricher, farm_profile, make_grant):
        await pipeline.discover(farm_profile, [make_grant(id="a")])

        result = await pipeline.discover(farm_profile, [make_grant(id="a"), make_grant(id="b")])

        assert static_enricher.calls == [["a"], ["b"]]
        assert result.stats.from_cache == 1
        assert result.stats.from_ai == 1

    @pytest.mark.asyncio
    async def test_use_cache_false_always_enriches(self, pipeline, static_enricher, memory_store, farm_profile, make_grant):
        options = DiscoveryOptions(use_cache=False)

        await pipeline.discover(farm_profile, [make_grant()], options)
        await pipeline.discover(farm_profile, [make_grant()], options)

        assert len(static_enricher.calls) == 2
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_cache_expiry_re_enriches(self, pipeline, static_enricher, clock, farm_profile, make_grant):
        await pipeline.discover(farm_profile, [make_grant()])
        clock.advance(days=8)

        result = await pipeline.discover(farm_profile, [make_grant()])

        assert len(static_enricher.calls) == 2
        assert result.stats.from_ai == 1

    @pytest.mark.asyncio
    async def test_cache_outage_still_enriches(self, static_enricher, clock, farm_profile, make_grant, caplog):
        store = MagicMock()
        store.get_many.side_effect = ConnectionError("store unavailable")
        store.upsert_many.side_effect = ConnectionError("store unavailable")
        pipeline = DiscoveryPipeline(cache=MatchCache(store, clock=clock), enricher=static_enricher, clock=clock)

        with caplog.at_level(logging.ERROR):
            result = await pipeline.discover(farm_profile, [make_grant()])

        assert result.grants[0].ai_score == 90
        assert result.stats.from_cache == 0
        assert result.stats.from_ai == 1
        assert "cache_error" in caplog.text

    @pytest.mark.asyncio
    async def test_ai_candidate_limit(self, match_cache, static_enricher, clock, farm_profile, make_grant):
        pipeline = DiscoveryPipeline(
            cache=match_cache,
            enricher=static_enricher,
            settings=_settings(ai_candidate_limit=2),
            clock=clock,
        )
        grants = [make_grant(id=f"g{i}") for i in range(4)]

        result = await pipeline.discover(farm_profile, grants)

        assert len(static_enricher.calls[0]) == 2
        assert result.total == 4
        assert result.stats.from_ai == 2
        assert sum(1 for ranked in result.grants if ranked.ai_score is not None) == 2


# ---------------------------------------------------------------------------
# Fallback tiers
# ---------------------------------------------------------------------------

class TestFallbackTiers:
    @pytest.mark.asyncio
    async def test_grants_without_url_are_relaxed(self, pipeline, farm_profile, make_grant):
        grants = [make_grant(id="a", url=None), make_grant(id="b", url="")]

        result = await pipeline.discover(farm_profile, grants, DETERMINISTIC_ONLY)

        assert result.total == 2
        assert result.stats.filter_tier == MatchTier.RELAXED
        assert result.stats.relaxed_filters
        assert result.message == RELAXED_MESSAGE

    @pytest.mark.asyncio
    async def test_url_grants_keep_strict_tier(self, pipeline, farm_profile, make_grant):
        grants = [make_grant(id="a"), make_grant(id="b", url=None)]

        result = await pipeline.discover(farm_profile, grants, DETERMINISTIC_ONLY)

        assert [ranked.grant_id for ranked in result.grants] == ["a"]
        assert result.stats.filter_tier == MatchTier.STRICT
        assert result.stats.rejected_by_filter == {"url": 1}

    @pytest.mark.asyncio
    async def test_opting_out_of_url_is_strict(self, pipeline, farm_profile, make_grant):
        options = DiscoveryOptions(use_ai=False, require_url=False)

        result = await pipeline.discover(farm_profile, [make_grant(url=None)], options)

        assert result.total == 1
        assert result.stats.filter_tier == MatchTier.STRICT
        assert result.message is None

    @pytest.mark.asyncio
    async def test_all_ineligible_is_empty_with_reasons(self, pipeline, static_enricher, farm_profile, make_grant):
        grants = [
            make_grant(id="texas", locations=["TX"]),
            make_grant(id="nonprofits", eligibility={"tags": ["Nonprofit"]}),
        ]

        result = await pipeline.discover(farm_profile, grants)

        assert result.grants == []
        assert result.total == 0
        assert result.message == NO_GRANTS_MESSAGE
        assert result.stats.filter_tier == MatchTier.EMPTY
        assert result.stats.rejected_by_filter == {"geography": 1, "entity": 1}
        assert "TX" in result.stats.rejection_reasons["texas"]
        assert "small_business" in result.stats.rejection_reasons["nonprofits"]
        assert static_enricher.calls == []

    @pytest.mark.asyncio
    async def test_empty_pool(self, pipeline):
        result = await pipeline.discover({"user_id": "user-1"}, [])

        assert result.total == 0
        assert result.stats.fetched == 0
        assert result.message == NO_GRANTS_MESSAGE

    @pytest.mark.asyncio
    async def test_below_threshold_returns_top_n(self, match_cache, clock, farm_profile, make_grant):
        pipeline = DiscoveryPipeline(cache=match_cache, clock=clock)
        grants = [make_grant(id=f"g{i}") for i in range(12)]

        result = await pipeline.discover(farm_profile, grants, DiscoveryOptions(min_score=99))

        assert result.total == 10
        assert result.stats.threshold_tier == MatchTier.BELOW_THRESHOLD
        assert result.stats.below_threshold
        assert result.message == BELOW_THRESHOLD_MESSAGE

    @pytest.mark.asyncio
    async def test_fallback_count_from_settings(self, match_cache, clock, farm_profile, make_grant):
        pipeline = DiscoveryPipeline(
            cache=match_cache,
            settings=_settings(min_score=99, below_threshold_fallback_count=3),
            clock=clock,
        )
        grants = [make_grant(id=f"g{i}") for i in range(5)]

        result = await pipeline.discover(farm_profile, grants)

        assert result.total == 3
        assert result.stats.below_threshold


# ---------------------------------------------------------------------------
# Sorting and paging
# ---------------------------------------------------------------------------

class TestSortingAndPaging:
    @pytest.mark.asyncio
    async def test_deadline_soon_puts_undated_last(self, pipeline, farm_profile, make_grant):
        grants = [
            make_grant(id="none"),
            make_grant(id="later", deadline_date=NOW + timedelta(days=90)),
            make_grant(id="sooner", deadline_date=NOW + timedelta(days=20)),
        ]
        options = DiscoveryOptions(use_ai=False, sort_by=SortBy.DEADLINE_SOON)

        result = await pipeline.discover(farm_profile, grants, options)

        assert [ranked.grant_id for ranked in result.grants] == ["sooner", "later", "none"]

    @pytest.mark.asyncio
    async def test_highest_funding(self, pipeline, farm_profile, make_grant):
        grants = [
            make_grant(id="small", amount_min=1_000, amount_max=10_000),
            make_grant(id="large", amount_min=1_000, amount_max=45_000),
            make_grant(id="medium", amount_min=1_000, amount_max=25_000),
        ]
        options = DiscoveryOptions(use_ai=False, sort_by=SortBy.HIGHEST_FUNDING)

        result = await pipeline.discover(farm_profile, grants, options)

        assert [ranked.grant_id for ranked in result.grants] == ["large", "medium", "small"]

    @pytest.mark.asyncio
    async def test_newest_falls_back_to_updated_at(self, pipeline, farm_profile, make_grant):
        grants = [
            make_grant(id="old", posted_date=datetime(2025, 1, 1, tzinfo=timezone.utc)),
            make_grant(id="unposted", posted_date=None, updated_at=datetime(2025, 5, 15, tzinfo=timezone.utc)),
            make_grant(id="recent", posted_date=datetime(2025, 3, 1, tzinfo=timezone.utc)),
        ]
        options = DiscoveryOptions(use_ai=False, sort_by=SortBy.NEWEST)

        result = await pipeline.discover(farm_profile, grants, options)

        assert [ranked.grant_id for ranked in result.grants] == ["unposted", "recent", "old"]

    @pytest.mark.asyncio
    async def test_pagination(self, pipeline, farm_profile, make_grant):
        grants = [make_grant(id=f"g{i}") for i in range(5)]
        options = DiscoveryOptions(use_ai=False, offset=2, limit=2)

        result = await pipeline.discover(farm_profile, grants, options)

        assert result.total == 5
        assert [ranked.grant_id for ranked in result.grants] == ["g2", "g3"]

    @pytest.mark.asyncio
    async def test_offset_past_end(self, pipeline, farm_profile, make_grant):
        options = DiscoveryOptions(use_ai=False, offset=10)

        result = await pipeline.discover(farm_profile, [make_grant()], options)

        assert result.grants == []
        assert result.total == 1

    def test_sort_ranked_empty(self):
        assert sort_ranked([], SortBy.BEST_MATCH) == []


# ---------------------------------------------------------------------------
# Inputs and ranked fields
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_raw_dict_candidates_are_parsed(pipeline, farm_profile):
    raw = [
        {
            "id": "raw-1",
            "title": "Farm Equipment Grant",
            "summary": "Funding for farmers to buy agricultural equipment.",
            "categories": '["Agriculture"]',
            "locations": '[{"state": "CA", "country": "US"}]',
            "url": "https://example.gov/raw",
            "amount_max": "25000",
        },
        {"id": "raw-1", "title": "Duplicate copy", "url": "https://example.gov/dup"},
        {"title": "Missing id"},
    ]

    result = await pipeline.discover(farm_profile, raw, DETERMINISTIC_ONLY)

    assert result.stats.fetched == 1
    assert [ranked.grant_id for ranked in result.grants] == ["raw-1"]
    assert result.grants[0].amount_max == 25_000


@pytest.mark.asyncio
async def test_invalid_profile_dict_raises(pipeline, make_grant):
    with pytest.raises(ValidationError):
        await pipeline.discover({"entity_type": "small_business"}, [make_grant()])


@pytest.mark.asyncio
async def test_urgency_falls_back_to_deadline(pipeline, farm_profile, make_grant):
    grant = make_grant(deadline_date=NOW + timedelta(days=5))

    result = await pipeline.discover(farm_profile, [grant], DETERMINISTIC_ONLY)

    assert result.grants[0].urgency == "high"


@pytest.mark.asyncio
async def test_stats_and_logging(pipeline, farm_profile, make_grant, caplog):
    with caplog.at_level(logging.INFO):
        result = await pipeline.discover(farm_profile, [make_grant()])

    stats = result.stats
    assert stats.fetched == 1
    assert stats.after_eligibility == 1
    assert stats.after_scoring == 1
    assert stats.score_distribution["61-80"] == 1
    assert stats.duration_ms >= 0
    assert "discovery_complete user_id=user-1" in caplog.text


@pytest.mark.asyncio
async def test_ranked_grant_carries_source_identifiers(pipeline, farm_profile, make_grant):
    grant = make_grant(source_id="USDA-RD-2025-07", source_name="grants_gov")

    result = await pipeline.discover(farm_profile, [grant], DETERMINISTIC_ONLY)

    ranked = result.grants[0]
    assert ranked.grant_id == "grant-1"
    assert ranked.source_id == "USDA-RD-2025-07"
    assert ranked.source_name == "grants_gov"
