"""HardFilterResult - Pass/fail outcome of the eligibility gate. Never persisted."""

from typing import Optional

from pydantic import BaseModel, Field


class HardFilterResult(BaseModel):
    passes: bool = Field(..., description="True when every filter passed")
    reason: Optional[str] = Field(None, description="User-facing reason for a failure")
    filter_name: Optional[str] = Field(None, description="Name of the filter that failed")

    @classmethod
    def ok(cls) -> "HardFilterResult":
        return cls(passes=True)

    @classmethod
    def fail(cls, filter_name: str, reason: str) -> "HardFilterResult":
        return cls(passes=False, reason=reason, filter_name=filter_name)
