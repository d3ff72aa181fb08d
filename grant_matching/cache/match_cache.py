"""Profile-version and grant-freshness aware match cache.

An entry is served only when all three hold:

* ``now < expires_at``
* ``entry.profile_version == profile_version``
* ``entry.grant_updated_at >= grant.updated_at`` (when the caller supplies it)

Every public method catches and logs store errors and degrades to "no cache":
reads return a miss, writes return False, deletes return 0. A cache outage
only forces recomputation.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..models import (
    CachedMatchData,
    CacheStats,
    CacheWrite,
    EnrichmentResult,
    MatchCacheEntry,
    MatchData,
)
from .store import MatchCacheStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def match_result_to_cache_data(result: EnrichmentResult) -> MatchData:
    """Strip an enrichment result down to the cached explanation fields."""
    return MatchData(**result.model_dump(include=set(MatchData.model_fields)))


def cache_data_to_enrichment(cached: CachedMatchData) -> EnrichmentResult:
    """Rebuild an enrichment result from a cache hit."""
    return EnrichmentResult(**cached.model_dump(include=set(MatchData.model_fields)))


class MatchCache:
    """Cache of enriched matches keyed by (user_id, grant_id)."""

    def __init__(
        self,
        store: MatchCacheStore,
        ttl_days: int = DEFAULT_TTL_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Backing key-value store.
            ttl_days: Days until a written entry expires.
            clock: Returns the current aware datetime (defaults to UTC now).
        """
        self._store = store
        self._ttl = timedelta(days=ttl_days)
        self._clock = clock or _utcnow

    @property
    def store(self) -> MatchCacheStore:
        return self._store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_cached_match(
        self,
        user_id: str,
        grant_id: str,
        profile_version: int,
        grant_updated_at: Optional[datetime] = None,
    ) -> Optional[CachedMatchData]:
        """Return the cached match, or None on a miss.

        Expired entries are deleted as a side effect.
        """
        try:
            entry = self._store.get(user_id, grant_id)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                self._store.delete(user_id, grant_id)
                logger.debug("cache_evict user_id=%s grant_id=%s reason=expired", user_id, grant_id)
                return None

            if entry.profile_version != profile_version:
                return None

            if grant_updated_at is not None and entry.grant_updated_at < _aware(grant_updated_at):
                return None

            return entry.to_cached_data()
        except Exception as exc:
            logger.error("cache_error op=get user_id=%s grant_id=%s error=%s", user_id, grant_id, exc)
            return None

    def get_cached_matches(
        self,
        user_id: str,
        grant_ids: List[str],
        profile_version: int,
    ) -> Dict[str, CachedMatchData]:
        """Batch read of entries that are unexpired and profile-version matched.

        No grant-freshness check here: callers compare ``grant_updated_at``
        themselves.
        """
        if not grant_ids:
            return {}
        try:
            now = self._clock()
            entries = self._store.get_many(user_id, list(grant_ids))
            return {
                entry.grant_id: entry.to_cached_data()
                for entry in entries
                if entry.profile_version == profile_version and not entry.is_expired(now)
            }
        except Exception as exc:
            logger.error(
                "cache_error op=get_many user_id=%s count=%d error=%s", user_id, len(grant_ids), exc
            )
            return {}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_cached_match(
        self,
        user_id: str,
        grant_id: str,
        profile_version: int,
        grant_updated_at: datetime,
        data: MatchData,
    ) -> bool:
        try:
            self._store.upsert(self._build_entry(user_id, grant_id, profile_version, grant_updated_at, data))
            return True
        except Exception as exc:
            logger.error("cache_error op=set user_id=%s grant_id=%s error=%s", user_id, grant_id, exc)
            return False

    def set_cached_matches(
        self,
        user_id: str,
        profile_version: int,
        writes: List[CacheWrite],
    ) -> bool:
        """Upsert a batch for one user atomically."""
        if not writes:
            return True
        try:
            entries = [
                self._build_entry(user_id, write.grant_id, profile_version, write.grant_updated_at, write.data)
                for write in writes
            ]
            self._store.upsert_many(entries)
            logger.info("cache_write user_id=%s count=%d", user_id, len(entries))
            return True
        except Exception as exc:
            logger.error("cache_error op=set_many user_id=%s count=%d error=%s", user_id, len(writes), exc)
            return False

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate_user_cache(self, user_id: str) -> int:
        """Drop every entry for a user (call after a scoring-relevant profile update)."""
        try:
            count = self._store.delete_by_user(user_id)
            logger.info("cache_invalidate scope=user user_id=%s deleted=%d", user_id, count)
            return count
        except Exception as exc:
            logger.error("cache_error op=invalidate_user user_id=%s error=%s", user_id, exc)
            return 0

    def invalidate_grant_cache(self, grant_id: str) -> int:
        """Drop every entry for a grant (call after re-ingesting it with new content)."""
        try:
            count = self._store.delete_by_grant(grant_id)
            logger.info("cache_invalidate scope=grant grant_id=%s deleted=%d", grant_id, count)
            return count
        except Exception as exc:
            logger.error("cache_error op=invalidate_grant grant_id=%s error=%s", grant_id, exc)
            return 0

    def cleanup_expired_cache(self) -> int:
        """Sweep entries past their TTL."""
        try:
            count = self._store.delete_expired(self._clock())
            logger.info("cache_cleanup deleted=%d", count)
            return count
        except Exception as exc:
            logger.error("cache_error op=cleanup error=%s", exc)
            return 0

    def get_cache_stats(self) -> CacheStats:
        try:
            return self._store.stats(self._clock())
        except Exception as exc:
            logger.error("cache_error op=stats error=%s", exc)
            return CacheStats()

    # ------------------------------------------------------------------

    def _build_entry(
        self,
        user_id: str,
        grant_id: str,
        profile_version: int,
        grant_updated_at: datetime,
        data: MatchData,
    ) -> MatchCacheEntry:
        now = self._clock()
        return MatchCacheEntry(
            **data.model_dump(include=set(MatchData.model_fields)),
            user_id=user_id,
            grant_id=grant_id,
            profile_version=profile_version,
            grant_updated_at=grant_updated_at,
            created_at=now,
            expires_at=now + self._ttl,
        )


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
