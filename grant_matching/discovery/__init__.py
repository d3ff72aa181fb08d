"""Discovery orchestration: candidate parsing, fallback ladders, enrichment and ranking."""

from .candidates import Deduplicator, parse_grants
from .collaborators import (
    CollaboratorError,
    CollaboratorErrorKind,
    CollaboratorResult,
    Enricher,
    HttpEnricher,
    call_enricher,
)
from .fallback import (
    HARD_FILTER_LADDER,
    NO_URL_LADDER,
    THRESHOLD_LADDER,
    apply_hard_filter_ladder,
    apply_threshold_ladder,
)
from .pipeline import DiscoveryPipeline, combine_scores, deadline_urgency, sort_ranked

__all__ = [
    "Deduplicator",
    "parse_grants",
    "CollaboratorError",
    "CollaboratorErrorKind",
    "CollaboratorResult",
    "Enricher",
    "HttpEnricher",
    "call_enricher",
    "HARD_FILTER_LADDER",
    "NO_URL_LADDER",
    "THRESHOLD_LADDER",
    "apply_hard_filter_ladder",
    "apply_threshold_ladder",
    "DiscoveryPipeline",
    "combine_scores",
    "deadline_urgency",
    "sort_ranked",
]
