"""Hard eligibility filters applied before scoring."""

from .filter import (
    FilterBatchResult,
    HardFilterOptions,
    RELAXED_OPTIONS,
    STRICT_OPTIONS,
    filter_eligible_grants,
    run_hard_filters,
)

__all__ = [
    "FilterBatchResult",
    "HardFilterOptions",
    "RELAXED_OPTIONS",
    "STRICT_OPTIONS",
    "filter_eligible_grants",
    "run_hard_filters",
]
