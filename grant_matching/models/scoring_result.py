"""ScoringResult - Deterministic fit score with its per-component breakdown."""

from enum import Enum

from pydantic import BaseModel, Field


class ConfidenceLevel(str, Enum):
    """How complete the user's profile is, independent of any grant."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MatchTierLabel(str, Enum):
    """Coarse label derived purely from the total score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    LOW = "low"


TIER_LABELS = {
    MatchTierLabel.EXCELLENT: "Excellent Match",
    MatchTierLabel.GOOD: "Good Match",
    MatchTierLabel.FAIR: "Fair Match",
    MatchTierLabel.LOW: "Low Match",
}


class ScoreBreakdown(BaseModel):
    """Points awarded per component. Each value is bounded by its weight."""

    entity_match: int = Field(..., ge=0, description="Out of 20 by default")
    industry_match: int = Field(..., ge=0, description="Out of 25 by default")
    geography_match: int = Field(..., ge=0, description="Out of 15 by default")
    size_match: int = Field(..., ge=0, description="Out of 10 by default")
    purpose_match: int = Field(..., ge=0, description="Out of 15 by default")
    preferences_match: int = Field(..., ge=0, description="Out of 10 by default")
    quality_bonus: int = Field(..., ge=0, description="Out of 5 by default")

    def total(self) -> int:
        return (
            self.entity_match
            + self.industry_match
            + self.geography_match
            + self.size_match
            + self.purpose_match
            + self.preferences_match
            + self.quality_bonus
        )


class ScoringResult(BaseModel):
    """Output of the scoring engine for one (profile, grant) pair."""

    grant_id: str = Field(..., description="Scored grant")
    total_score: int = Field(..., ge=0, le=100, description="Clamped sum of the breakdown")
    breakdown: ScoreBreakdown
    match_reasons: list[str] = Field(default_factory=list, description="At most five reasons")
    warnings: list[str] = Field(default_factory=list)
    confidence_level: ConfidenceLevel
    tier: MatchTierLabel
    tier_label: str = Field(..., description="Display label, e.g. 'Good Match'")
    weights_version: str = Field(default="1.0", description="ScoringWeights version used")
