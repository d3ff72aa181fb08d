"""Read-only taxonomy container handed to the filter and scoring functions."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from . import tables


def _freeze(table: Mapping[str, list]) -> Mapping[str, tuple]:
    return MappingProxyType({key: tuple(values) for key, values in table.items()})


@dataclass(frozen=True)
class Taxonomy:
    """Immutable snapshot of the controlled vocabulary.

    Loaded once at import time as ``DEFAULT_TAXONOMY``. Tests and experiments
    build variants with ``build_taxonomy(**overrides)`` instead of mutating it.
    """

    version: str
    entity_types: tuple
    entity_type_labels: Mapping[str, str]
    entity_to_eligibility_tags: Mapping[str, tuple]
    small_entity_types: frozenset
    entity_exclusion_phrases: Mapping[str, tuple]
    institution_only_keywords: tuple
    small_entity_positive_keywords: tuple
    industry_tags: tuple
    industry_labels: Mapping[str, str]
    industry_positive_keywords: Mapping[str, tuple]
    industry_exclusion_keywords: Mapping[str, tuple]
    category_to_industry: Mapping[str, tuple]
    category_aliases: Mapping[str, tuple]
    us_states: Mapping[str, str]
    funding_type_labels: Mapping[str, str]
    purpose_tag_labels: Mapping[str, str]
    goals_to_purpose: Mapping[str, tuple]
    certification_labels: Mapping[str, str]
    size_band_labels: Mapping[str, str]
    budget_range_labels: Mapping[str, str]
    budget_to_grant_size: Mapping[str, tuple]
    small_budgets: frozenset
    grant_size_breakpoints: tuple
    quality_thresholds: Mapping[str, float]

    # ----- Lookups -----

    def eligibility_tags_for(self, entity_type: Optional[str]) -> tuple:
        if not entity_type:
            return ()
        return self.entity_to_eligibility_tags.get(entity_type, ())

    def positive_keywords(self, industry_tag: str) -> tuple:
        """Keywords for a tag. Unknown tags fall back to the tag itself."""
        return self.industry_positive_keywords.get(industry_tag, (industry_tag.replace("_", " "),))

    def exclusion_keywords(self, industry_tag: str) -> tuple:
        return self.industry_exclusion_keywords.get(industry_tag, ())

    def industries_for_category(self, category: str) -> tuple:
        return self.category_to_industry.get(category, ())

    def purposes_for_goal(self, goal: str) -> tuple:
        goal = goal.lower()
        return self.goals_to_purpose.get(goal, (goal,))

    def grant_sizes_for_budget(self, budget: Optional[str]) -> tuple:
        if not budget:
            return ()
        return self.budget_to_grant_size.get(budget, ())

    def industry_label(self, industry_tag: str) -> str:
        return self.industry_labels.get(industry_tag, industry_tag.replace("_", " ").title())

    def entity_label(self, entity_type: str) -> str:
        return self.entity_type_labels.get(entity_type, entity_type)


def build_taxonomy(**overrides) -> Taxonomy:
    """Freeze the module tables into a Taxonomy, replacing any named table."""
    source = {
        "version": tables.TAXONOMY_VERSION,
        "entity_types": tables.ENTITY_TYPES,
        "entity_type_labels": tables.ENTITY_TYPE_LABELS,
        "entity_to_eligibility_tags": tables.ENTITY_TO_ELIGIBILITY_TAGS,
        "small_entity_types": tables.SMALL_ENTITY_TYPES,
        "entity_exclusion_phrases": tables.ENTITY_EXCLUSION_PHRASES,
        "institution_only_keywords": tables.INSTITUTION_ONLY_KEYWORDS,
        "small_entity_positive_keywords": tables.SMALL_ENTITY_POSITIVE_KEYWORDS,
        "industry_tags": tables.INDUSTRY_TAGS,
        "industry_labels": tables.INDUSTRY_LABELS,
        "industry_positive_keywords": tables.INDUSTRY_POSITIVE_KEYWORDS,
        "industry_exclusion_keywords": tables.INDUSTRY_EXCLUSION_KEYWORDS,
        "category_to_industry": tables.CATEGORY_TO_INDUSTRY,
        "category_aliases": tables.CATEGORY_ALIASES,
        "us_states": tables.US_STATES,
        "funding_type_labels": tables.FUNDING_TYPE_LABELS,
        "purpose_tag_labels": tables.PURPOSE_TAG_LABELS,
        "goals_to_purpose": tables.GOALS_TO_PURPOSE,
        "certification_labels": tables.CERTIFICATION_LABELS,
        "size_band_labels": tables.SIZE_BAND_LABELS,
        "budget_range_labels": tables.BUDGET_RANGE_LABELS,
        "budget_to_grant_size": tables.BUDGET_TO_GRANT_SIZE,
        "small_budgets": tables.SMALL_BUDGETS,
        "grant_size_breakpoints": tables.GRANT_SIZE_BREAKPOINTS,
        "quality_thresholds": tables.QUALITY_THRESHOLDS,
    }
    unknown = set(overrides) - set(source)
    if unknown:
        raise ValueError(f"Unknown taxonomy table(s): {', '.join(sorted(unknown))}")
    source.update(overrides)

    return Taxonomy(
        version=source["version"],
        entity_types=tuple(source["entity_types"]),
        entity_type_labels=MappingProxyType(dict(source["entity_type_labels"])),
        entity_to_eligibility_tags=_freeze(source["entity_to_eligibility_tags"]),
        small_entity_types=frozenset(source["small_entity_types"]),
        entity_exclusion_phrases=_freeze(source["entity_exclusion_phrases"]),
        institution_only_keywords=tuple(source["institution_only_keywords"]),
        small_entity_positive_keywords=tuple(source["small_entity_positive_keywords"]),
        industry_tags=tuple(source["industry_tags"]),
        industry_labels=MappingProxyType(dict(source["industry_labels"])),
        industry_positive_keywords=_freeze(source["industry_positive_keywords"]),
        industry_exclusion_keywords=_freeze(source["industry_exclusion_keywords"]),
        category_to_industry=_freeze(source["category_to_industry"]),
        category_aliases=_freeze(source["category_aliases"]),
        us_states=MappingProxyType(dict(source["us_states"])),
        funding_type_labels=MappingProxyType(dict(source["funding_type_labels"])),
        purpose_tag_labels=MappingProxyType(dict(source["purpose_tag_labels"])),
        goals_to_purpose=_freeze(source["goals_to_purpose"]),
        certification_labels=MappingProxyType(dict(source["certification_labels"])),
        size_band_labels=MappingProxyType(dict(source["size_band_labels"])),
        budget_range_labels=MappingProxyType(dict(source["budget_range_labels"])),
        budget_to_grant_size=_freeze(source["budget_to_grant_size"]),
        small_budgets=frozenset(source["small_budgets"]),
        grant_size_breakpoints=tuple(tuple(pair) for pair in source["grant_size_breakpoints"]),
        quality_thresholds=MappingProxyType(dict(source["quality_thresholds"])),
    )


DEFAULT_TAXONOMY = build_taxonomy()
