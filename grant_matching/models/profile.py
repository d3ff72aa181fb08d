"""UserProfile - Applicant profile that grants are matched against.

``profile_version`` is the only cache-invalidation token: every update to a
scoring-relevant field must bump it, and it never goes backwards.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class GrantPreferences(BaseModel):
    """Soft preferences that only nudge the preferences component of the score."""

    preferred_size: Optional[str] = Field(None, description="micro, small, medium or large")
    timeline: Optional[str] = Field(None, description="immediate, quarter, year or flexible")
    complexity: Optional[str] = Field(None, description="simple, moderate or complex")


class UserProfile(BaseModel):
    """One profile per user."""

    user_id: str = Field(..., description="Owning user identifier")
    entity_type: Optional[str] = Field(None, description="Canonical entity type, e.g. small_business")
    state: Optional[str] = Field(None, description="Two-letter region code")
    industry_tags: list[str] = Field(default_factory=list, description="Canonical industry tags")
    size_band: Optional[str] = Field(None, description="solo, small, medium or large")
    stage: Optional[str] = Field(None, description="idea, startup, growth or established")
    annual_budget: Optional[str] = Field(None, description="Budget range key, e.g. 100k_250k")
    industry_attributes: dict[str, Any] = Field(
        default_factory=dict, description="Free-form answers to domain-specific questions"
    )
    goals: list[str] = Field(default_factory=list, description="Funding goal keys, e.g. equipment")
    certifications: list[str] = Field(default_factory=list, description="Certification keys, e.g. organic")
    grant_preferences: Optional[GrantPreferences] = Field(None, description="Soft preferences")
    onboarding_completed: bool = Field(default=False)
    profile_version: int = Field(default=1, ge=0, description="Monotonic cache-invalidation token")

    @field_validator("industry_tags", "goals", "certifications", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                value = [value]
        if not isinstance(value, (list, tuple, set)):
            return []
        return [str(item) for item in value if item]

    @field_validator("industry_attributes", mode="before")
    @classmethod
    def _coerce_attributes(cls, value: Any) -> dict[str, Any]:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return {}
        return value if isinstance(value, dict) else {}

    def model_post_init(self, __context) -> None:
        """Fall back to goals stored inside industry_attributes."""
        if self.goals:
            return
        stored = self.industry_attributes.get("goals")
        if isinstance(stored, str):
            try:
                stored = json.loads(stored)
            except ValueError:
                stored = [stored]
        if isinstance(stored, list):
            self.goals = [str(goal) for goal in stored if goal]
