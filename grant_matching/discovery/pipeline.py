"""Discovery pipeline - filter, score, enrich and rank candidate grants for one profile."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..cache import MatchCache, cache_data_to_enrichment, match_result_to_cache_data
from ..config import Settings
from ..models import (
    CacheWrite,
    DiscoveryOptions,
    DiscoveryResult,
    DiscoveryStats,
    EnrichmentResult,
    MatchTier,
    RankedGrant,
    SortBy,
    UserProfile,
)
from ..scorer import DEFAULT_WEIGHTS, ScoredGrant, ScoringWeights, score_and_sort_grants
from ..scorer.engine import DEFAULT_MIN_SCORE
from ..taxonomy import DEFAULT_TAXONOMY, Taxonomy, format_funding_display
from .candidates import parse_grants
from .collaborators import Enricher, call_enricher
from .fallback import HARD_FILTER_LADDER, NO_URL_LADDER, apply_hard_filter_ladder, apply_threshold_ladder

logger = logging.getLogger(__name__)

DEFAULT_AI_CANDIDATE_LIMIT = 50
DEFAULT_FALLBACK_COUNT = 10
DEFAULT_ENRICHMENT_TIMEOUT = 20.0

DETERMINISTIC_WEIGHT = 60
AI_WEIGHT = 40

NO_GRANTS_MESSAGE = "No grants found matching your criteria. Try broadening your profile."
RELAXED_MESSAGE = "Some grants are shown without an application link because no exact matches were found."
BELOW_THRESHOLD_MESSAGE = "No strong matches found. Showing the closest grants we could find."

SCORE_BUCKETS = (
    ("0-20", 0, 20),
    ("21-40", 21, 40),
    ("41-60", 41, 60),
    ("61-80", 61, 80),
    ("81-100", 81, 100),
)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)
_FAR_PAST = datetime.min.replace(tzinfo=timezone.utc)


def combine_scores(deterministic: int, ai_score: Optional[int]) -> int:
    """Weighted 60/40 blend rounded half-up, or the deterministic score alone."""
    if ai_score is None:
        return deterministic
    return (DETERMINISTIC_WEIGHT * deterministic + AI_WEIGHT * ai_score + 50) // 100


def deadline_urgency(deadline: Optional[datetime], now: datetime) -> str:
    if deadline is None:
        return "low"
    days = (deadline - now).days
    if days <= 14:
        return "high"
    elif days <= 45:
        return "medium"
    return "low"


def score_distribution(scores: Iterable[int]) -> Dict[str, int]:
    distribution = {label: 0 for label, _, _ in SCORE_BUCKETS}
    for score in scores:
        for label, low, high in SCORE_BUCKETS:
            if low <= score <= high:
                distribution[label] += 1
                break
    return distribution


def sort_ranked(grants: List[RankedGrant], sort_by: SortBy) -> List[RankedGrant]:
    """Order ranked grants for display. All sorts are stable."""
    if sort_by == SortBy.DEADLINE_SOON:
        return sorted(grants, key=lambda g: (g.deadline_date is None, g.deadline_date or _FAR_FUTURE))
    elif sort_by == SortBy.HIGHEST_FUNDING:
        return sorted(grants, key=lambda g: g.amount_max or 0, reverse=True)
    elif sort_by == SortBy.NEWEST:
        return sorted(grants, key=lambda g: g.posted_date or _FAR_PAST, reverse=True)
    return sorted(grants, key=lambda g: g.combined_score, reverse=True)


class DiscoveryPipeline:
    """Produces the ranked page of grants for a profile.

    Only truly unexpected errors propagate. Ineligible grants, empty pools,
    cache outages and enrichment failures all degrade to a result.
    """

    def __init__(
        self,
        cache: Optional[MatchCache] = None,
        enricher: Optional[Enricher] = None,
        settings: Optional[Settings] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize pipeline.

        Args:
            cache: Match cache, or None to always recompute
            enricher: AI enrichment collaborator, or None for deterministic-only results
            settings: Tunables; module defaults are used when omitted
            weights: Scoring weights
            taxonomy: Taxonomy tables passed to filters and scoring
            clock: Returns the current aware datetime
        """
        self.cache = cache
        self.enricher = enricher
        self.weights = weights
        self.taxonomy = taxonomy
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        if settings is not None:
            self.min_score = settings.min_score
            self.ai_candidate_limit = settings.ai_candidate_limit
            self.fallback_count = settings.below_threshold_fallback_count
            self.enrichment_timeout = settings.enrichment_timeout_seconds
        else:
            self.min_score = DEFAULT_MIN_SCORE
            self.ai_candidate_limit = DEFAULT_AI_CANDIDATE_LIMIT
            self.fallback_count = DEFAULT_FALLBACK_COUNT
            self.enrichment_timeout = DEFAULT_ENRICHMENT_TIMEOUT

    async def discover(
        self,
        profile: UserProfile,
        candidate_grants: Iterable[Any],
        options: Optional[DiscoveryOptions] = None,
        abort: Optional[asyncio.Event] = None,
    ) -> DiscoveryResult:
        """Rank candidate grants for a profile.

        Args:
            profile: The user's profile (a dict is validated into UserProfile)
            candidate_grants: Grant models or raw grant dicts
            options: Paging, sorting and cache/AI switches
            abort: When set, pending enrichment is abandoned

        Returns:
            DiscoveryResult with the requested page, the total and stats
        """
        start = time.monotonic()
        options = options or DiscoveryOptions()
        if not isinstance(profile, UserProfile):
            profile = UserProfile.model_validate(profile)
        now = self._clock()
        min_score = options.min_score if options.min_score is not None else self.min_score

        grants = parse_grants(candidate_grants)
        stats = DiscoveryStats(fetched=len(grants))

        # Hard filters
        ladder = HARD_FILTER_LADDER if options.require_url else NO_URL_LADDER
        filtered = apply_hard_filter_ladder(profile, grants, ladder, self.taxonomy)
        stats.filter_tier = filtered.tier
        stats.after_eligibility = len(filtered.batch.eligible)
        stats.rejected_by_filter = dict(filtered.batch.failure_counts)
        stats.rejection_reasons = filtered.batch.rejection_reasons

        if filtered.tier == MatchTier.EMPTY:
            stats.threshold_tier = MatchTier.EMPTY
            stats.duration_ms = (time.monotonic() - start) * 1000
            self._log_complete(profile, stats)
            return DiscoveryResult(stats=stats, message=NO_GRANTS_MESSAGE)

        # Deterministic scoring and threshold
        scored = score_and_sort_grants(profile, filtered.batch.eligible, self.weights, self.taxonomy, now)
        threshold = apply_threshold_ladder(scored, min_score, self.fallback_count)
        stats.threshold_tier = threshold.tier
        stats.after_scoring = len(threshold.grants)
        stats.score_distribution = score_distribution(item.scoring.total_score for item in scored)

        if threshold.tier == MatchTier.EMPTY:
            stats.duration_ms = (time.monotonic() - start) * 1000
            self._log_complete(profile, stats)
            return DiscoveryResult(stats=stats, message=NO_GRANTS_MESSAGE)

        # Enrichment for the top candidates
        enrichments, cached_ids = await self._enrich(
            profile, threshold.grants[: self.ai_candidate_limit], options, stats, abort
        )

        ranked = [
            self._rank(item, enrichments.get(item.grant.id), item.grant.id in cached_ids, now)
            for item in threshold.grants
        ]
        ranked = sort_ranked(ranked, options.sort_by)
        page = ranked[options.offset: options.offset + options.limit]

        stats.duration_ms = (time.monotonic() - start) * 1000
        self._log_complete(profile, stats)
        return DiscoveryResult(
            grants=page,
            total=len(ranked),
            stats=stats,
            message=self._message(stats),
        )

    async def _enrich(
        self,
        profile: UserProfile,
        candidates: List[ScoredGrant],
        options: DiscoveryOptions,
        stats: DiscoveryStats,
        abort: Optional[asyncio.Event],
    ):
        """Return (enrichments by grant id, ids served from cache)."""
        enrichments: Dict[str, EnrichmentResult] = {}
        cached_ids = set()
        if not candidates:
            return enrichments, cached_ids

        grants_by_id = {item.grant.id: item.grant for item in candidates}
        use_cache = options.use_cache and self.cache is not None

        if use_cache:
            cached = self.cache.get_cached_matches(profile.user_id, list(grants_by_id), profile.profile_version)
            for grant_id, data in cached.items():
                grant = grants_by_id.get(grant_id)
                # Batch reads skip the freshness check
                if grant is None or data.grant_updated_at < grant.updated_at:
                    continue
                enrichments[grant_id] = cache_data_to_enrichment(data)
                cached_ids.add(grant_id)

        stats.from_cache = len(cached_ids)
        misses = [grant for grant_id, grant in grants_by_id.items() if grant_id not in cached_ids]

        # use_ai gates the collaborator call, not cache reads
        if not misses or not options.use_ai:
            stats.ai_enabled = bool(cached_ids)
            return enrichments, cached_ids

        result = await call_enricher(self.enricher, profile, misses, self.enrichment_timeout, abort)
        if not result.ok:
            stats.ai_enabled = bool(cached_ids)
            return enrichments, cached_ids

        batch = result.value
        stats.ai_enabled = True
        stats.token_usage = stats.token_usage.add(batch.usage)
        writes = []
        for grant in misses:
            enrichment = batch.results.get(grant.id)
            if enrichment is None:
                continue
            enrichments[grant.id] = enrichment
            writes.append(
                CacheWrite(
                    grant_id=grant.id,
                    grant_updated_at=grant.updated_at,
                    data=match_result_to_cache_data(enrichment),
                )
            )
        stats.from_ai = len(writes)

        if use_cache and writes:
            self.cache.set_cached_matches(profile.user_id, profile.profile_version, writes)
        return enrichments, cached_ids

    def _rank(
        self,
        item: ScoredGrant,
        enrichment: Optional[EnrichmentResult],
        from_cache: bool,
        now: datetime,
    ) -> RankedGrant:
        grant, scoring = item.grant, item.scoring
        ai_score = enrichment.fit_score if enrichment is not None else None
        urgency = enrichment.urgency if enrichment is not None and enrichment.urgency else None

        fields = dict(
            grant_id=grant.id,
            source_id=grant.source_id,
            source_name=grant.source_name,
            title=grant.title,
            sponsor=grant.sponsor,
            summary=grant.summary,
            url=grant.url,
            amount_min=grant.amount_min,
            amount_max=grant.amount_max,
            funding_display=format_funding_display(grant.amount_min, grant.amount_max, grant.amount_text),
            deadline_date=grant.deadline_date,
            posted_date=grant.posted_date or grant.updated_at,
            deterministic_score=scoring.total_score,
            ai_score=ai_score,
            combined_score=combine_scores(scoring.total_score, ai_score),
            breakdown=scoring.breakdown,
            tier=scoring.tier,
            tier_label=scoring.tier_label,
            confidence_level=scoring.confidence_level,
            urgency=urgency or deadline_urgency(grant.deadline_date, now),
            match_reasons=list(scoring.match_reasons),
            warnings=list(scoring.warnings),
            from_cache=from_cache,
        )
        if enrichment is not None:
            fields.update(
                fit_summary=enrichment.fit_summary,
                fit_explanation=enrichment.fit_explanation,
                eligibility_status=enrichment.eligibility_status,
                next_steps=list(enrichment.next_steps),
                what_you_can_fund=list(enrichment.what_you_can_fund),
                application_tips=list(enrichment.application_tips),
            )
        return RankedGrant(**fields)

    @staticmethod
    def _message(stats: DiscoveryStats) -> Optional[str]:
        if stats.below_threshold:
            return BELOW_THRESHOLD_MESSAGE
        if stats.relaxed_filters:
            return RELAXED_MESSAGE
        return None

    @staticmethod
    def _log_complete(profile: UserProfile, stats: DiscoveryStats) -> None:
        logger.info(
            "discovery_complete user_id=%s fetched=%d eligible=%d scored=%d from_cache=%d from_ai=%d "
            "filter_tier=%s threshold_tier=%s ai_enabled=%s duration_ms=%.0f",
            profile.user_id,
            stats.fetched,
            stats.after_eligibility,
            stats.after_scoring,
            stats.from_cache,
            stats.from_ai,
            stats.filter_tier.value,
            stats.threshold_tier.value,
            stats.ai_enabled,
            stats.duration_ms,
        )
