"""Match cache keyed by (user_id, grant_id)."""

from .match_cache import (
    DEFAULT_TTL_DAYS,
    MatchCache,
    cache_data_to_enrichment,
    match_result_to_cache_data,
)
from .store import InMemoryMatchStore, MatchCacheStore
from .sweeper import run_cleanup, start_cleanup_scheduler

__all__ = [
    "DEFAULT_TTL_DAYS",
    "MatchCache",
    "cache_data_to_enrichment",
    "match_result_to_cache_data",
    "InMemoryMatchStore",
    "MatchCacheStore",
    "run_cleanup",
    "start_cleanup_scheduler",
]
