"""Controlled vocabulary for entity types, industries, geography and sizes."""

from .taxonomy import DEFAULT_TAXONOMY, Taxonomy, build_taxonomy
from .helpers import (
    contains_keywords,
    count_keyword_matches,
    format_funding_display,
    get_grant_size_category,
    normalize_state,
    normalize_to_canonical,
)

__all__ = [
    "DEFAULT_TAXONOMY",
    "Taxonomy",
    "build_taxonomy",
    "contains_keywords",
    "count_keyword_matches",
    "format_funding_display",
    "get_grant_size_category",
    "normalize_state",
    "normalize_to_canonical",
]
