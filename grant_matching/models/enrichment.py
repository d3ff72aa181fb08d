"""Enrichment models - Contract with the external AI fit-explanation service."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

URGENCY_LEVELS = ("high", "medium", "low")


class MatchData(BaseModel):
    """Explanation fields for one (user, grant) match.

    Shared by the enrichment contract and the match cache so a cached entry and
    a fresh enrichment carry exactly the same shape.
    """

    fit_score: int = Field(..., ge=0, le=100, description="AI fit score")
    fit_summary: str = Field(default="", description="One-sentence summary")
    fit_explanation: str = Field(default="", description="Longer explanation")
    eligibility_status: str = Field(default="unknown", description="eligible, likely_eligible, check_requirements, ...")
    next_steps: list[str] = Field(default_factory=list)
    what_you_can_fund: list[str] = Field(default_factory=list)
    application_tips: list[str] = Field(default_factory=list)
    urgency: Optional[str] = Field(None, description="high, medium or low")

    @field_validator("fit_score", mode="before")
    @classmethod
    def _round_score(cls, value):
        if isinstance(value, float):
            return int(value + 0.5)
        return value

    @field_validator("urgency")
    @classmethod
    def _known_urgency(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.lower()
        return value if value in URGENCY_LEVELS else None


class EnrichmentResult(MatchData):
    """Fit explanation returned by the enrichment collaborator for one grant."""


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class EnrichmentBatch(BaseModel):
    """Results keyed by grant id plus the token usage of the whole call."""

    results: dict[str, EnrichmentResult] = Field(default_factory=dict)
    usage: TokenUsage = Field(default_factory=TokenUsage)
