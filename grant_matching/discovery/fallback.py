"""Fallback ladders for the discovery pipeline.

Each ladder is an ordered list of named rungs. The pipeline tries them in
order and reports which rung produced the result as a ``MatchTier``, so every
rung can be tested on its own.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from ..eligibility import RELAXED_OPTIONS, STRICT_OPTIONS, FilterBatchResult, HardFilterOptions, filter_eligible_grants
from ..models import Grant, MatchTier, UserProfile
from ..scorer import ScoredGrant
from ..taxonomy import DEFAULT_TAXONOMY, Taxonomy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterRung:
    tier: MatchTier
    options: HardFilterOptions


HARD_FILTER_LADDER = (
    FilterRung(MatchTier.STRICT, STRICT_OPTIONS),
    FilterRung(MatchTier.RELAXED, RELAXED_OPTIONS),
)

# Caller opted out of the URL requirement, so the no-URL pass counts as strict
NO_URL_LADDER = (FilterRung(MatchTier.STRICT, RELAXED_OPTIONS),)


@dataclass
class FilterOutcome:
    tier: MatchTier
    batch: FilterBatchResult = field(default_factory=FilterBatchResult)


def apply_hard_filter_ladder(
    profile: UserProfile,
    grants: List[Grant],
    ladder=HARD_FILTER_LADDER,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> FilterOutcome:
    """Return the first rung with at least one eligible grant, else ``EMPTY``.

    The last rung's rejections are kept on an empty outcome for debugging.
    """
    batch = FilterBatchResult()
    for rung in ladder:
        batch = filter_eligible_grants(profile, grants, rung.options, taxonomy)
        if batch.eligible:
            if rung.tier != MatchTier.STRICT:
                logger.info("filter_fallback tier=%s eligible=%d", rung.tier.value, len(batch.eligible))
            return FilterOutcome(rung.tier, batch)
    return FilterOutcome(MatchTier.EMPTY, batch)


@dataclass
class ThresholdOutcome:
    tier: MatchTier
    grants: List[ScoredGrant] = field(default_factory=list)


def threshold_at_min_score(scored: List[ScoredGrant], min_score: int, fallback_count: int) -> List[ScoredGrant]:
    return [item for item in scored if item.scoring.total_score >= min_score]


def top_n_regardless(scored: List[ScoredGrant], min_score: int, fallback_count: int) -> List[ScoredGrant]:
    return scored[:fallback_count]


THRESHOLD_LADDER = (
    (MatchTier.STRICT, threshold_at_min_score),
    (MatchTier.BELOW_THRESHOLD, top_n_regardless),
)


def apply_threshold_ladder(
    scored: List[ScoredGrant],
    min_score: int,
    fallback_count: int,
    ladder=THRESHOLD_LADDER,
) -> ThresholdOutcome:
    """Keep grants over the threshold, or fall back to the top N by score.

    ``scored`` must already be sorted best-first.
    """
    for tier, strategy in ladder:
        kept = strategy(scored, min_score, fallback_count)
        if kept:
            if tier != MatchTier.STRICT:
                logger.info("threshold_fallback tier=%s kept=%d min_score=%d", tier.value, len(kept), min_score)
            return ThresholdOutcome(tier, kept)
    return ThresholdOutcome(MatchTier.EMPTY)
