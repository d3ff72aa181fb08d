"""Shared Pydantic models for the grant matching engine."""

from .grant import Grant, GrantEligibility, GrantLocation
from .profile import GrantPreferences, UserProfile
from .hard_filter_result import HardFilterResult
from .scoring_result import ConfidenceLevel, MatchTierLabel, ScoreBreakdown, ScoringResult, TIER_LABELS
from .enrichment import EnrichmentBatch, EnrichmentResult, MatchData, TokenUsage
from .match_cache import CachedMatchData, CacheStats, CacheWrite, MatchCacheEntry
from .discovery import (
    DiscoveryOptions,
    DiscoveryResult,
    DiscoveryStats,
    MatchTier,
    RankedGrant,
    SortBy,
)

__all__ = [
    "Grant",
    "GrantEligibility",
    "GrantLocation",
    "GrantPreferences",
    "UserProfile",
    "HardFilterResult",
    "ConfidenceLevel",
    "MatchTierLabel",
    "ScoreBreakdown",
    "ScoringResult",
    "TIER_LABELS",
    "EnrichmentBatch",
    "EnrichmentResult",
    "MatchData",
    "TokenUsage",
    "CachedMatchData",
    "CacheStats",
    "CacheWrite",
    "MatchCacheEntry",
    "DiscoveryOptions",
    "DiscoveryResult",
    "DiscoveryStats",
    "MatchTier",
    "RankedGrant",
    "SortBy",
]
