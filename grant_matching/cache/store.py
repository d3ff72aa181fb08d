"""Persistent store abstraction for match cache entries."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import CacheStats, MatchCacheEntry

EXPIRING_SOON_WINDOW = timedelta(hours=24)


def compute_stats(rows: Iterable[Tuple[str, datetime, datetime]], now: datetime) -> CacheStats:
    """Aggregate stats over (user_id, created_at, expires_at) rows."""
    rows = list(rows)
    if not rows:
        return CacheStats()
    users = {user_id for user_id, _, _ in rows}
    expiring = sum(1 for _, _, expires_at in rows if now < expires_at <= now + EXPIRING_SOON_WINDOW)
    total_age = sum((now - created_at).total_seconds() for _, created_at, _ in rows)
    return CacheStats(
        total_entries=len(rows),
        distinct_users=len(users),
        expiring_soon=expiring,
        average_age_hours=round(total_age / len(rows) / 3600, 2),
    )


class MatchCacheStore(ABC):
    """Key-value store keyed by (user_id, grant_id).

    Implementations raise on failure; ``MatchCache`` is the layer that logs
    and degrades.
    """

    @abstractmethod
    def get(self, user_id: str, grant_id: str) -> Optional[MatchCacheEntry]:
        pass

    @abstractmethod
    def get_many(self, user_id: str, grant_ids: List[str]) -> List[MatchCacheEntry]:
        pass

    @abstractmethod
    def upsert(self, entry: MatchCacheEntry) -> None:
        pass

    @abstractmethod
    def upsert_many(self, entries: List[MatchCacheEntry]) -> None:
        """Write all entries or none."""
        pass

    @abstractmethod
    def delete(self, user_id: str, grant_id: str) -> bool:
        pass

    @abstractmethod
    def delete_by_user(self, user_id: str) -> int:
        pass

    @abstractmethod
    def delete_by_grant(self, grant_id: str) -> int:
        pass

    @abstractmethod
    def delete_expired(self, now: datetime) -> int:
        """Delete entries with ``expires_at < now``."""
        pass

    @abstractmethod
    def stats(self, now: datetime) -> CacheStats:
        pass


class InMemoryMatchStore(MatchCacheStore):
    """Thread-safe dict-backed store for tests and single-process deployments."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], MatchCacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, user_id: str, grant_id: str) -> Optional[MatchCacheEntry]:
        with self._lock:
            return self._entries.get((user_id, grant_id))

    def get_many(self, user_id: str, grant_ids: List[str]) -> List[MatchCacheEntry]:
        with self._lock:
            return [
                self._entries[(user_id, grant_id)]
                for grant_id in grant_ids
                if (user_id, grant_id) in self._entries
            ]

    def upsert(self, entry: MatchCacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def upsert_many(self, entries: List[MatchCacheEntry]) -> None:
        staged = {entry.key: entry for entry in entries}
        with self._lock:
            self._entries.update(staged)

    def delete(self, user_id: str, grant_id: str) -> bool:
        with self._lock:
            return self._entries.pop((user_id, grant_id), None) is not None

    def delete_by_user(self, user_id: str) -> int:
        return self._delete_where(lambda entry: entry.user_id == user_id)

    def delete_by_grant(self, grant_id: str) -> int:
        return self._delete_where(lambda entry: entry.grant_id == grant_id)

    def delete_expired(self, now: datetime) -> int:
        return self._delete_where(lambda entry: entry.expires_at < now)

    def stats(self, now: datetime) -> CacheStats:
        with self._lock:
            rows = [(entry.user_id, entry.created_at, entry.expires_at) for entry in self._entries.values()]
        return compute_stats(rows, now)

    def _delete_where(self, predicate) -> int:
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if predicate(entry)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)
