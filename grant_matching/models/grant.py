"""Grant - Normalized funding opportunity record consumed by the matching engine.

Source payloads disagree on the shape of ``eligibility``, ``locations`` and the
tag lists (JSON strings, bare lists, objects). The ``mode="before"`` validators
below collapse every variant into one canonical shape so the filter and
scoring code never has to guess.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

_DATETIME = TypeAdapter(datetime)

NATIONAL_LOCATION_VALUES = {"national", "nationwide", "all states", "usa", "united states"}


def _load_json(value: Any) -> Any:
    """Decode a JSON string, returning None when it is not valid JSON."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def parse_string_list(value: Any) -> list[str]:
    """Coerce a JSON string, list or scalar into a list of non-empty strings."""
    if isinstance(value, str):
        decoded = _load_json(value)
        if decoded is None:
            # A bare word like "Agriculture" is a one-element list
            return [value.strip()] if value.strip() and value.strip()[0] not in "[{" else []
        value = decoded
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return []


class GrantLocation(BaseModel):
    """One geographic scope entry, e.g. ``{type: "state", value: "CA"}``."""

    type: str = Field(..., description="national, regional, state, county, city, tribal or unknown")
    value: Optional[str] = Field(None, description="State code, county name, etc.")

    @property
    def is_national(self) -> bool:
        kind = (self.type or "").lower()
        value = (self.value or "").lower()
        return kind in ("national", "nationwide") or value in NATIONAL_LOCATION_VALUES


class GrantEligibility(BaseModel):
    """Declared applicant eligibility for a grant."""

    tags: list[str] = Field(default_factory=list, description="Free-text eligibility tags from the source")
    raw_text: Optional[str] = Field(None, description="Unstructured eligibility prose")


class Grant(BaseModel):
    """Funding opportunity as seen by the matching engine (read-only).

    ``updated_at`` is the freshness token the match cache compares against, so
    ingestion must bump it whenever a scoring-relevant field changes.
    """

    # Identity
    id: str = Field(..., description="Stable grant identifier")
    source_id: Optional[str] = Field(None, description="Identifier within the source system")
    source_name: Optional[str] = Field(None, description="Source system name")

    # Display
    title: str = Field(..., description="Grant title")
    sponsor: str = Field(default="", description="Funding organization")
    summary: Optional[str] = Field(None, description="Short summary")
    description: Optional[str] = Field(None, description="Full description")

    # Classification
    categories: list[str] = Field(default_factory=list, description="Source categories, mapped through taxonomy")
    eligibility: GrantEligibility = Field(default_factory=GrantEligibility)
    locations: list[GrantLocation] = Field(default_factory=list, description="Geographic restrictions")
    funding_type: Optional[str] = Field(None, description="grant, loan, rebate, tax_credit, ...")
    purpose_tags: list[str] = Field(default_factory=list, description="What the money may be spent on")

    # Financial
    amount_min: Optional[float] = Field(None, description="Minimum award amount")
    amount_max: Optional[float] = Field(None, description="Maximum award amount")
    amount_text: Optional[str] = Field(None, description="Free-text award description")

    # Dates
    deadline_date: Optional[datetime] = Field(None, description="Application deadline")
    deadline_type: Optional[str] = Field(None, description="fixed or rolling")
    posted_date: Optional[datetime] = Field(None, description="Publication date")

    # Links / status
    url: Optional[str] = Field(None, description="Application URL")
    status: str = Field(default="open", description="open, closed or forecasted")
    quality_score: Optional[float] = Field(None, description="Source data confidence, 0-1 or 0-100")

    # Freshness token
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Changes whenever a scoring-relevant field changes",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "grant-usda-reap-2025",
                "title": "Rural Energy for America Program",
                "sponsor": "USDA Rural Development",
                "summary": "Grants for agricultural producers and rural small businesses to install renewable energy.",
                "categories": ["Agriculture", "Energy"],
                "eligibility": {"tags": ["Agricultural Producer", "Small Business"]},
                "locations": [{"type": "national"}],
                "amount_max": 1000000,
                "deadline_date": "2025-10-31T00:00:00Z",
                "url": "https://www.rd.usda.gov/reap",
                "status": "open",
                "quality_score": 0.9,
                "updated_at": "2025-06-01T00:00:00Z",
            }
        }
    }

    @field_validator("categories", "purpose_tags", mode="before")
    @classmethod
    def _coerce_tag_list(cls, value: Any) -> list[str]:
        return parse_string_list(value)

    @field_validator("eligibility", mode="before")
    @classmethod
    def _coerce_eligibility(cls, value: Any) -> dict:
        value = _load_json(value) if isinstance(value, str) else value
        if isinstance(value, GrantEligibility):
            return value.model_dump()
        if isinstance(value, (list, tuple)):
            return {"tags": parse_string_list(list(value))}
        if isinstance(value, dict):
            raw_text = value.get("raw_text", value.get("rawText"))
            return {
                "tags": parse_string_list(value.get("tags")),
                "raw_text": raw_text if isinstance(raw_text, str) else None,
            }
        return {}

    @field_validator("locations", mode="before")
    @classmethod
    def _coerce_locations(cls, value: Any) -> list[dict]:
        value = _load_json(value) if isinstance(value, str) else value
        if isinstance(value, dict):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []

        locations = []
        for item in value:
            if isinstance(item, GrantLocation):
                locations.append(item.model_dump())
            elif isinstance(item, str) and item.strip():
                if item.strip().lower() in NATIONAL_LOCATION_VALUES:
                    locations.append({"type": "national"})
                else:
                    locations.append({"type": "state", "value": item.strip()})
            elif isinstance(item, dict):
                if item.get("type"):
                    value_field = item.get("value")
                    locations.append({
                        "type": str(item["type"]).lower(),
                        "value": str(value_field) if value_field is not None else None,
                    })
                elif item.get("state"):
                    # Legacy storage shape: {"state": "CA", "country": "US"}
                    state = str(item["state"]).strip()
                    if state.lower() in NATIONAL_LOCATION_VALUES:
                        locations.append({"type": "national"})
                    else:
                        locations.append({"type": "state", "value": state})
                else:
                    locations.append({"type": "unknown"})
        return locations

    @field_validator("quality_score", "amount_min", "amount_max", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Optional[float]:
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @field_validator("deadline_date", "posted_date", mode="before")
    @classmethod
    def _coerce_optional_date(cls, value: Any) -> Optional[datetime]:
        # "Rolling", "TBD" and other free text mean no usable date
        if value is None or value == "":
            return None
        try:
            return _DATETIME.validate_python(value)
        except ValidationError:
            return None

    @field_validator("deadline_date", "posted_date", "updated_at", mode="after")
    @classmethod
    def _ensure_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def match_text(self) -> str:
        """Lower-cased title, sponsor, summary and description used for keyword tests."""
        parts = [self.title, self.sponsor, self.summary or "", self.description or ""]
        return " ".join(parts).lower()

    @property
    def eligibility_text(self) -> str:
        """Lower-cased eligibility tags and raw eligibility prose."""
        parts = list(self.eligibility.tags) + [self.eligibility.raw_text or ""]
        return " ".join(parts).lower()
