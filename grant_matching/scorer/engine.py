"""Deterministic scoring engine for grant relevance.

Scores a (profile, grant) pair that already passed the hard filters across six
weighted components plus a data-quality bonus. No randomness and no I/O: the
same profile, grant and clock always give the same result, which is what
makes cached matches valid.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from ..models import (
    ConfidenceLevel,
    Grant,
    MatchTierLabel,
    ScoreBreakdown,
    ScoringResult,
    TIER_LABELS,
    UserProfile,
)
from ..taxonomy import DEFAULT_TAXONOMY, Taxonomy, count_keyword_matches, get_grant_size_category, normalize_state
from ..eligibility.filter import normalize_tag
from .weights import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)

MAX_REASONS = 5
DEFAULT_MIN_SCORE = 30
LARGE_GRANT_WARNING = "This is a large grant - may be competitive"


@dataclass
class _Component:
    points: int
    reasons: List[str] = field(default_factory=list)
    warning: Optional[str] = None


@dataclass
class ScoredGrant:
    """A grant paired with its scoring result."""

    grant: Grant
    scoring: ScoringResult


def _points(max_points: int, percent: int) -> int:
    """``max_points * percent / 100`` rounded half-up, in integer arithmetic."""
    return (max_points * percent + 50) // 100


def calculate_score(
    profile: UserProfile,
    grant: Grant,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    now: Optional[datetime] = None,
) -> ScoringResult:
    """Score a grant against a profile.

    Components (default maximum points):
    1. Entity match (20): organization type vs. declared eligibility tags
    2. Industry match (25): categories and keywords vs. focus areas
    3. Geography match (15): grant locations vs. profile state
    4. Size match (10): grant size vs. preferred size or budget
    5. Purpose match (15): grant purpose tags vs. expanded goals
    6. Preferences match (10): deadline vs. timeline preference
    7. Quality bonus (5): source data confidence

    Args:
        profile: User profile
        grant: Grant that passed the hard filters
        weights: Maximum points per component
        taxonomy: Vocabulary tables
        now: Clock for deadline-relative scoring (defaults to current UTC time)

    Returns:
        ScoringResult with breakdown, reasons, warnings, confidence and tier
    """
    now = now or datetime.now(timezone.utc)

    entity = _score_entity_match(profile, grant, weights.entity_match, taxonomy)
    industry = _score_industry_match(profile, grant, weights.industry_match, taxonomy)
    geography = _score_geography_match(profile, grant, weights.geography_match, taxonomy)
    size = _score_size_match(profile, grant, weights.size_match, taxonomy)
    purpose = _score_purpose_match(profile, grant, weights.purpose_match, taxonomy)
    preferences = _score_preferences_match(profile, grant, weights.preferences_match, now)
    quality = _score_quality_bonus(grant, weights.quality_bonus)

    reasons = entity.reasons + industry.reasons + geography.reasons + purpose.reasons
    warnings = [size.warning] if size.warning else []

    breakdown = ScoreBreakdown(
        entity_match=entity.points,
        industry_match=industry.points,
        geography_match=geography.points,
        size_match=size.points,
        purpose_match=purpose.points,
        preferences_match=preferences.points,
        quality_bonus=quality.points,
    )
    total_score = min(100, max(0, breakdown.total()))
    tier = determine_tier(total_score)

    return ScoringResult(
        grant_id=grant.id,
        total_score=total_score,
        breakdown=breakdown,
        match_reasons=reasons[:MAX_REASONS],
        warnings=warnings,
        confidence_level=determine_confidence_level(profile),
        tier=tier,
        tier_label=TIER_LABELS[tier],
        weights_version=weights.version,
    )


def _score_entity_match(
    profile: UserProfile, grant: Grant, max_points: int, taxonomy: Taxonomy
) -> _Component:
    compatible = taxonomy.eligibility_tags_for(profile.entity_type)
    if not compatible:
        # No entity type, or one the taxonomy doesn't know
        return _Component(_points(max_points, 50))

    grant_tags = [normalize_tag(tag) for tag in grant.eligibility.tags]
    grant_tags = [tag for tag in grant_tags if tag]
    if not grant_tags:
        return _Component(_points(max_points, 80), ["Open to all organization types"])

    wanted = [normalize_tag(tag) for tag in compatible]
    if any(tag in grant_tags for tag in wanted):
        return _Component(max_points, ["Perfect match for your organization type"])

    for tag in wanted:
        for grant_tag in grant_tags:
            if tag in grant_tag or grant_tag in tag:
                return _Component(_points(max_points, 75), ["Good match for your organization type"])

    return _Component(_points(max_points, 20))


def _score_industry_match(
    profile: UserProfile, grant: Grant, max_points: int, taxonomy: Taxonomy
) -> _Component:
    if not profile.industry_tags:
        return _Component(_points(max_points, 50))

    text = grant.match_text
    match_count = 0
    matched: List[str] = []

    for tag in profile.industry_tags:
        tag_lower = tag.lower()
        spaced = tag_lower.replace("_", " ")

        # At most one category hit per tag
        for category in grant.categories:
            category_lower = category.lower()
            if (
                tag_lower in taxonomy.industries_for_category(category)
                or category_lower in spaced
                or spaced in category_lower
            ):
                match_count += 1
                matched.append(category)
                break

        if count_keyword_matches(text, taxonomy.positive_keywords(tag_lower)) >= 2:
            match_count += 1
            if tag not in matched:
                matched.append(tag)

    if match_count >= 3:
        return _Component(max_points, [f"Excellent match: {', '.join(matched[:2])}"])
    if match_count == 2:
        return _Component(_points(max_points, 85), [f"Strong match: {', '.join(matched)}"])
    if match_count == 1:
        return _Component(_points(max_points, 60), [f"Matches your focus on {matched[0]}"])
    return _Component(_points(max_points, 10))


def _score_geography_match(
    profile: UserProfile, grant: Grant, max_points: int, taxonomy: Taxonomy
) -> _Component:
    if not grant.locations:
        return _Component(_points(max_points, 80), ["Available nationwide"])

    if any(location.is_national for location in grant.locations):
        return _Component(_points(max_points, 85), ["National grant"])

    user_state = normalize_state(profile.state, taxonomy)
    if not user_state:
        return _Component(_points(max_points, 50))

    for location in grant.locations:
        if location.type != "state" or not location.value:
            continue
        code = normalize_state(location.value, taxonomy) or location.value.upper()
        if code == user_state:
            return _Component(max_points, [f"Specifically for {user_state}"])

    return _Component(_points(max_points, 40))


def _score_size_match(
    profile: UserProfile, grant: Grant, max_points: int, taxonomy: Taxonomy
) -> _Component:
    budget = profile.annual_budget
    preferred = profile.grant_preferences.preferred_size if profile.grant_preferences else None

    if not budget and not preferred:
        return _Component(_points(max_points, 50))

    grant_size = get_grant_size_category(grant.amount_min, grant.amount_max, taxonomy)

    if preferred and preferred != "any":
        if preferred == grant_size:
            return _Component(max_points)
        return _Component(_points(max_points, 50))

    if budget:
        if grant_size in taxonomy.grant_sizes_for_budget(budget):
            return _Component(_points(max_points, 80))
        if grant_size == "large" and budget in taxonomy.small_budgets:
            return _Component(_points(max_points, 40), warning=LARGE_GRANT_WARNING)

    return _Component(_points(max_points, 50))


def _score_purpose_match(
    profile: UserProfile, grant: Grant, max_points: int, taxonomy: Taxonomy
) -> _Component:
    if not grant.purpose_tags or not profile.goals:
        return _Component(_points(max_points, 50))

    wanted = set()
    for goal in profile.goals:
        wanted.update(taxonomy.purposes_for_goal(goal))

    matched = [purpose for purpose in grant.purpose_tags if purpose.lower() in wanted]

    if len(matched) >= 2:
        return _Component(max_points, [f"Funds {' and '.join(matched[:2])}"])
    if len(matched) == 1:
        return _Component(_points(max_points, 80), [f"Funds {matched[0]}"])
    return _Component(_points(max_points, 30))


def _score_preferences_match(
    profile: UserProfile, grant: Grant, max_points: int, now: datetime
) -> _Component:
    points = _points(max_points, 50)
    timeline = profile.grant_preferences.timeline if profile.grant_preferences else None

    if timeline and grant.deadline_date:
        days_left = math.ceil((grant.deadline_date - now).total_seconds() / 86400)
        if timeline == "immediate" and days_left <= 60:
            points += 3
        elif timeline == "quarter" and days_left <= 180:
            points += 2
        elif timeline == "flexible":
            points += 2
        elif timeline == "year":
            points += 1

    return _Component(min(max_points, points))


def _score_quality_bonus(grant: Grant, max_points: int) -> _Component:
    """Quality given as 0-1 or 0-100; missing counts as 50."""
    raw = grant.quality_score if grant.quality_score is not None else 50
    normalized = raw / 100 if raw > 1 else raw
    normalized = min(1.0, max(0.0, normalized))
    points = (Decimal(str(normalized)) * max_points).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return _Component(int(points))


def determine_confidence_level(profile: UserProfile) -> ConfidenceLevel:
    """Profile completeness, independent of any grant."""
    preferred = profile.grant_preferences.preferred_size if profile.grant_preferences else None
    completeness = sum([
        bool(profile.entity_type),
        bool(profile.state),
        bool(profile.industry_tags),
        bool(profile.size_band or profile.annual_budget),
        bool(preferred),
    ])
    if completeness >= 4:
        return ConfidenceLevel.HIGH
    if completeness >= 2:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def determine_tier(total_score: int) -> MatchTierLabel:
    if total_score >= 80:
        return MatchTierLabel.EXCELLENT
    elif total_score >= 60:
        return MatchTierLabel.GOOD
    elif total_score >= 40:
        return MatchTierLabel.FAIR
    else:
        return MatchTierLabel.LOW


def score_and_sort_grants(
    profile: UserProfile,
    grants: List[Grant],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    now: Optional[datetime] = None,
) -> List[ScoredGrant]:
    """Score every grant and sort by total score, highest first.

    The sort is stable: equal scores keep their input order. A grant whose
    scoring raises is logged and left out.
    """
    now = now or datetime.now(timezone.utc)
    scored = []
    for grant in grants:
        try:
            scoring = calculate_score(profile, grant, weights, taxonomy, now)
        except Exception as exc:
            logger.warning("scoring_skipped grant_id=%s error=%s", grant.id, exc)
            continue
        scored.append(ScoredGrant(grant=grant, scoring=scoring))

    scored.sort(key=lambda item: item.scoring.total_score, reverse=True)
    return scored


def get_top_grants(
    profile: UserProfile,
    grants: List[Grant],
    limit: int = 20,
    min_score: int = DEFAULT_MIN_SCORE,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
    now: Optional[datetime] = None,
) -> List[ScoredGrant]:
    """Top ``limit`` grants scoring at least ``min_score``."""
    scored = score_and_sort_grants(profile, grants, weights, taxonomy, now)
    return [item for item in scored if item.scoring.total_score >= min_score][:limit]


def explain_score(breakdown: ScoreBreakdown, weights: ScoringWeights = DEFAULT_WEIGHTS) -> List[str]:
    """Short explanations for the strong components of a breakdown."""
    explanations = []

    if breakdown.entity_match * 10 >= weights.entity_match * 9:
        explanations.append("Excellent organization type match")
    elif breakdown.entity_match * 10 >= weights.entity_match * 6:
        explanations.append("Good organization type compatibility")

    if breakdown.industry_match * 10 >= weights.industry_match * 8:
        explanations.append("Strong alignment with your focus areas")
    elif breakdown.industry_match * 10 >= weights.industry_match * 6:
        explanations.append("Relevant to your industry")

    if breakdown.geography_match * 10 >= weights.geography_match * 8:
        explanations.append("Available in your location")

    if breakdown.purpose_match * 10 >= weights.purpose_match * 8:
        explanations.append("Funds your stated needs")

    return explanations
