"""Match cache models - Persisted per-(user, grant) enriched matches."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from .enrichment import MatchData


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CachedMatchData(MatchData):
    """What a cache read hands back: the match plus the tokens it was computed against."""

    profile_version: int = Field(..., description="Profile version the match was computed for")
    grant_updated_at: datetime = Field(..., description="Grant freshness token at compute time")
    cached_at: datetime = Field(..., description="When the entry was written")

    @field_validator("grant_updated_at", "cached_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        return _aware(value)


class MatchCacheEntry(MatchData):
    """Stored row. Unique on (user_id, grant_id).

    Valid iff ``now < expires_at``, the profile version matches exactly, and
    ``grant_updated_at`` is not older than the grant's current ``updated_at``.
    """

    user_id: str
    grant_id: str
    profile_version: int
    grant_updated_at: datetime
    created_at: datetime
    expires_at: datetime

    @field_validator("grant_updated_at", "created_at", "expires_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        return _aware(value)

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.grant_id)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def to_cached_data(self) -> CachedMatchData:
        data = self.model_dump(include=set(MatchData.model_fields))
        return CachedMatchData(
            **data,
            profile_version=self.profile_version,
            grant_updated_at=self.grant_updated_at,
            cached_at=self.created_at,
        )


class CacheWrite(BaseModel):
    """One item of a batch cache write."""

    grant_id: str
    grant_updated_at: datetime
    data: MatchData


class CacheStats(BaseModel):
    total_entries: int = 0
    distinct_users: int = 0
    expiring_soon: int = Field(default=0, description="Entries expiring within 24 hours")
    average_age_hours: float = 0.0
