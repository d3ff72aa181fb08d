"""Supabase-backed store for the grant_match_cache table."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from ..cache.store import MatchCacheStore, compute_stats
from ..models import CacheStats, MatchCacheEntry

logger = logging.getLogger(__name__)

TABLE_NAME = "grant_match_cache"
CONFLICT_KEY = "user_id,grant_id"
LIST_FIELDS = ("next_steps", "what_you_can_fund", "application_tips")


def entry_to_record(entry: MatchCacheEntry) -> Dict[str, Any]:
    """Serialize an entry to a table row. List fields are stored as JSON text."""
    record = entry.model_dump(mode="json")
    for name in LIST_FIELDS:
        record[name] = json.dumps(getattr(entry, name))
    return record


def record_to_entry(row: Dict[str, Any]) -> MatchCacheEntry:
    """Parse a table row back into an entry, keeping list order."""
    data = dict(row)
    for name in LIST_FIELDS:
        value = data.get(name)
        if isinstance(value, str):
            data[name] = json.loads(value) if value else []
        elif value is None:
            data[name] = []
    return MatchCacheEntry(**data)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SupabaseMatchStore(MatchCacheStore):
    """Match cache store on the Supabase ``grant_match_cache`` table.

    The table needs a unique constraint on (user_id, grant_id). Batch upserts
    go out as a single request, which PostgREST applies in one transaction.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
    ) -> None:
        """Initialize Supabase client from explicit args or env vars.

        Args:
            url: Supabase project URL (falls back to SUPABASE_URL env var).
            key: Supabase anon/service key (falls back to SUPABASE_KEY env var).
            client: Pre-built client, used instead of creating one.
        """
        if client is not None:
            self._client = client
        else:
            self._url = url or os.environ["SUPABASE_URL"]
            self._key = key or os.environ["SUPABASE_KEY"]
            self._client: Client = create_client(self._url, self._key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, user_id: str, grant_id: str) -> Optional[MatchCacheEntry]:
        response = (
            self._client.table(TABLE_NAME)
            .select("*")
            .eq("user_id", user_id)
            .eq("grant_id", grant_id)
            .limit(1)
            .execute()
        )
        return record_to_entry(response.data[0]) if response.data else None

    def get_many(self, user_id: str, grant_ids: List[str]) -> List[MatchCacheEntry]:
        if not grant_ids:
            return []
        response = (
            self._client.table(TABLE_NAME)
            .select("*")
            .eq("user_id", user_id)
            .in_("grant_id", grant_ids)
            .execute()
        )
        return [record_to_entry(row) for row in response.data]

    def upsert(self, entry: MatchCacheEntry) -> None:
        (
            self._client.table(TABLE_NAME)
            .upsert(entry_to_record(entry), on_conflict=CONFLICT_KEY)
            .execute()
        )
        logger.debug("Upserted match %s/%s", entry.user_id, entry.grant_id)

    def upsert_many(self, entries: List[MatchCacheEntry]) -> None:
        if not entries:
            return
        records = [entry_to_record(entry) for entry in entries]
        (
            self._client.table(TABLE_NAME)
            .upsert(records, on_conflict=CONFLICT_KEY)
            .execute()
        )
        logger.info("Upserted %d matches", len(records))

    def delete(self, user_id: str, grant_id: str) -> bool:
        response = (
            self._client.table(TABLE_NAME)
            .delete()
            .eq("user_id", user_id)
            .eq("grant_id", grant_id)
            .execute()
        )
        return bool(response.data)

    def delete_by_user(self, user_id: str) -> int:
        response = self._client.table(TABLE_NAME).delete().eq("user_id", user_id).execute()
        return len(response.data or [])

    def delete_by_grant(self, grant_id: str) -> int:
        response = self._client.table(TABLE_NAME).delete().eq("grant_id", grant_id).execute()
        return len(response.data or [])

    def delete_expired(self, now: datetime) -> int:
        response = (
            self._client.table(TABLE_NAME)
            .delete()
            .lt("expires_at", now.isoformat())
            .execute()
        )
        return len(response.data or [])

    def stats(self, now: datetime) -> CacheStats:
        response = (
            self._client.table(TABLE_NAME)
            .select("user_id,created_at,expires_at")
            .execute()
        )
        rows = [
            (row["user_id"], _parse_timestamp(row["created_at"]), _parse_timestamp(row["expires_at"]))
            for row in response.data
        ]
        return compute_stats(rows, now)
