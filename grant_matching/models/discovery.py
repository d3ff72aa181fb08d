"""Discovery models - Request options and the ranked page returned to callers."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .enrichment import TokenUsage
from .scoring_result import ConfidenceLevel, MatchTierLabel, ScoreBreakdown


class SortBy(str, Enum):
    BEST_MATCH = "best_match"
    DEADLINE_SOON = "deadline_soon"
    HIGHEST_FUNDING = "highest_funding"
    NEWEST = "newest"


class MatchTier(str, Enum):
    """Which rung of a fallback ladder produced the result."""

    STRICT = "strict"
    RELAXED = "relaxed"
    BELOW_THRESHOLD = "below_threshold"
    EMPTY = "empty"


class DiscoveryOptions(BaseModel):
    limit: int = Field(default=20, ge=1, le=100, description="Page size")
    offset: int = Field(default=0, ge=0, description="Page start")
    min_score: Optional[int] = Field(None, ge=0, le=100, description="Defaults to Settings.min_score")
    sort_by: SortBy = Field(default=SortBy.BEST_MATCH)
    use_cache: bool = True
    use_ai: bool = True
    require_url: bool = Field(default=True, description="Strict pass requires an application URL")


class RankedGrant(BaseModel):
    """One grant in the final ranked page."""

    # Identity and display
    grant_id: str
    source_id: Optional[str] = None
    source_name: Optional[str] = None
    title: str
    sponsor: str = ""
    summary: Optional[str] = None
    url: Optional[str] = None
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    funding_display: str = "Varies"
    deadline_date: Optional[datetime] = None
    posted_date: Optional[datetime] = None

    # Scores
    deterministic_score: int = Field(..., ge=0, le=100)
    ai_score: Optional[int] = Field(None, ge=0, le=100)
    combined_score: int = Field(..., ge=0, le=100, description="Ranking score")
    breakdown: ScoreBreakdown
    tier: MatchTierLabel
    tier_label: str
    confidence_level: ConfidenceLevel
    urgency: str = Field(default="low", description="high, medium or low")

    # Explanation
    match_reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    fit_summary: Optional[str] = None
    fit_explanation: Optional[str] = None
    eligibility_status: Optional[str] = None
    next_steps: list[str] = Field(default_factory=list)
    what_you_can_fund: list[str] = Field(default_factory=list)
    application_tips: list[str] = Field(default_factory=list)

    from_cache: bool = Field(default=False, description="Instrumentation only")


class DiscoveryStats(BaseModel):
    fetched: int = 0
    after_eligibility: int = 0
    after_scoring: int = 0
    from_cache: int = 0
    from_ai: int = 0
    ai_enabled: bool = False
    filter_tier: MatchTier = MatchTier.STRICT
    threshold_tier: MatchTier = MatchTier.STRICT
    rejected_by_filter: dict[str, int] = Field(default_factory=dict)
    rejection_reasons: dict[str, str] = Field(default_factory=dict, description="grant_id -> reason")
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    score_distribution: dict[str, int] = Field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def relaxed_filters(self) -> bool:
        return self.filter_tier == MatchTier.RELAXED

    @property
    def below_threshold(self) -> bool:
        return self.threshold_tier == MatchTier.BELOW_THRESHOLD


class DiscoveryResult(BaseModel):
    grants: list[RankedGrant] = Field(default_factory=list)
    total: int = Field(default=0, description="Ranked grants before pagination")
    stats: DiscoveryStats = Field(default_factory=DiscoveryStats)
    message: Optional[str] = Field(None, description="User-facing note for empty or degraded results")
