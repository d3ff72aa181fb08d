"""Deterministic weighted scoring engine for grant relevance."""

from .engine import (
    ScoredGrant,
    calculate_score,
    explain_score,
    get_top_grants,
    score_and_sort_grants,
)
from .weights import DEFAULT_WEIGHTS, load_weights, save_weights, ScoringWeights

__all__ = [
    "ScoredGrant",
    "calculate_score",
    "explain_score",
    "get_top_grants",
    "score_and_sort_grants",
    "DEFAULT_WEIGHTS",
    "load_weights",
    "save_weights",
    "ScoringWeights",
]
