"""Boundary parsing and de-duplication of candidate grants."""

import logging
from typing import Any, Iterable, List, Set, Union

from pydantic import ValidationError

from ..models import Grant

logger = logging.getLogger(__name__)


class Deduplicator:
    """Drops repeated grant ids, keeping the first occurrence.

    Input order is treated as priority (source freshness), so later copies of
    an id are the ones discarded.
    """

    def __init__(self, seen_ids: Set[str] = None):
        """Initialize deduplicator.

        Args:
            seen_ids: Grant ids that should already count as seen
        """
        self.seen_ids = set(seen_ids or ())

    def deduplicate(self, grants: List[Grant]) -> List[Grant]:
        """Filter out grants whose id was already seen.

        Args:
            grants: Grants in priority order

        Returns:
            Grants with unique ids, order preserved
        """
        unique = []
        duplicate_count = 0

        for grant in grants:
            if grant.id in self.seen_ids:
                duplicate_count += 1
                logger.debug("Duplicate grant dropped: %s", grant.id)
            else:
                unique.append(grant)
                self.seen_ids.add(grant.id)

        if duplicate_count:
            logger.info("Deduplication: %d unique, %d duplicates", len(unique), duplicate_count)
        return unique


def parse_grants(raw_grants: Iterable[Union[Grant, dict, Any]]) -> List[Grant]:
    """Validate a batch of candidates into ``Grant`` models.

    Records that cannot be validated even after field normalization are
    logged and skipped; one bad record never aborts the batch.
    """
    parsed = []
    skipped = 0
    for index, raw in enumerate(raw_grants):
        if isinstance(raw, Grant):
            parsed.append(raw)
            continue
        try:
            parsed.append(Grant.model_validate(raw))
        except ValidationError as exc:
            skipped += 1
            grant_id = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(
                "grant_skipped index=%d grant_id=%s errors=%d", index, grant_id, exc.error_count()
            )

    if skipped:
        logger.warning("parse_grants skipped=%d kept=%d", skipped, len(parsed))
    return Deduplicator().deduplicate(parsed)
