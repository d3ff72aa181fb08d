"""Hard eligibility filters.

Binary gate that runs before scoring. A grant that fails any filter is never
scored or shown. Filters run in a fixed order and stop at the first failure:

1. URL existence (skippable with ``require_url=False``)
2. Institution-only exclusion (small entity types only)
3. Explicit entity exclusion phrases
4. Entity-type eligibility
5. Geography eligibility
6. Industry minimum relevance

The order only decides which reason the user sees.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from pydantic import BaseModel

from ..models import Grant, HardFilterResult, UserProfile
from ..taxonomy import DEFAULT_TAXONOMY, Taxonomy, normalize_state

logger = logging.getLogger(__name__)


class HardFilterOptions(BaseModel):
    """Switches for the relaxable filters."""

    require_url: bool = True
    institution_filter: bool = True

    model_config = {"frozen": True}


STRICT_OPTIONS = HardFilterOptions()
RELAXED_OPTIONS = HardFilterOptions(require_url=False)


def normalize_tag(value: str) -> str:
    """Lower-case, treat ``-``/``_`` as spaces and collapse whitespace."""
    return re.sub(r"\s+", " ", re.sub(r"[-_]", " ", value.lower())).strip()


# ----- Individual filters -----


def check_url_exists(grant: Grant) -> HardFilterResult:
    if not grant.url or not grant.url.strip():
        return HardFilterResult.fail("url", "Grant has no application URL available")
    return HardFilterResult.ok()


def check_institution_only(
    profile: UserProfile,
    grant: Grant,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> HardFilterResult:
    """Reject institution-only grants for small entities.

    A small-entity keyword anywhere in the same text rescues the grant, since
    many programs list universities first but also admit small applicants.
    """
    if profile.entity_type not in taxonomy.small_entity_types:
        return HardFilterResult.ok()

    text = " ".join([grant.eligibility_text, grant.title.lower(), (grant.summary or "").lower()])
    hits = [keyword for keyword in taxonomy.institution_only_keywords if keyword in text]
    if not hits:
        return HardFilterResult.ok()

    if any(keyword in text for keyword in taxonomy.small_entity_positive_keywords):
        return HardFilterResult.ok()

    return HardFilterResult.fail(
        "institution",
        f"This grant appears to be limited to institutions ({hits[0]})",
    )


def check_explicit_exclusion(
    profile: UserProfile,
    grant: Grant,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> HardFilterResult:
    if not profile.entity_type:
        return HardFilterResult.ok()

    phrases = taxonomy.entity_exclusion_phrases.get(profile.entity_type, ())
    text = f"{grant.eligibility_text} {(grant.description or '').lower()}"
    for phrase in phrases:
        if phrase in text:
            return HardFilterResult.fail(
                "entity_exclusion",
                f"Grant explicitly excludes {profile.entity_type} applicants",
            )
    return HardFilterResult.ok()


def check_entity_eligibility(
    profile: UserProfile,
    grant: Grant,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> HardFilterResult:
    """The user's entity type must map to at least one declared eligibility tag."""
    compatible = taxonomy.eligibility_tags_for(profile.entity_type)
    grant_tags = grant.eligibility.tags

    # No entity type, an entity type the taxonomy doesn't know, or an open grant
    if not compatible or not grant_tags:
        return HardFilterResult.ok()

    wanted = [normalize_tag(tag) for tag in compatible]
    for grant_tag in grant_tags:
        declared = normalize_tag(grant_tag)
        if declared and any(declared == tag or tag in declared or declared in tag for tag in wanted):
            return HardFilterResult.ok()

    return HardFilterResult.fail(
        "entity",
        f"This grant is for {', '.join(grant_tags)}, but your organization type is {profile.entity_type}",
    )


def check_geography_eligibility(
    profile: UserProfile,
    grant: Grant,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> HardFilterResult:
    """National or unrestricted grants pass; state-restricted grants need the user's state."""
    locations = grant.locations
    if not locations or any(location.is_national for location in locations):
        return HardFilterResult.ok()

    user_state = normalize_state(profile.state, taxonomy)
    if not user_state:
        return HardFilterResult.ok()

    state_codes = [
        normalize_state(location.value, taxonomy) or (location.value or "").upper()
        for location in locations
        if location.type == "state" and location.value
    ]
    # County/city/regional-only restrictions are not checked here
    if not state_codes or user_state in state_codes:
        return HardFilterResult.ok()

    return HardFilterResult.fail(
        "geography",
        f"This grant is only available in {', '.join(state_codes)}, but you're in {user_state}",
    )


def _category_overlaps(tag: str, categories: list[str], taxonomy: Taxonomy) -> bool:
    spaced = tag.replace("_", " ")
    for category in categories:
        if tag in category or spaced in category or category in tag:
            return True
        if tag in (industry.lower() for industry in _industries(category, taxonomy)):
            return True
    aliases = taxonomy.category_aliases.get(tag, ())
    return any(alias in category or category in alias for alias in aliases for category in categories)


def _industries(category: str, taxonomy: Taxonomy) -> Iterable[str]:
    for name, industries in taxonomy.category_to_industry.items():
        if name.lower() == category:
            return industries
    return ()


def check_industry_minimum(
    profile: UserProfile,
    grant: Grant,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> HardFilterResult:
    """Require some relevance to the user's declared industries."""
    if not profile.industry_tags:
        return HardFilterResult.ok()

    text = grant.match_text
    user_tags = [tag.lower() for tag in profile.industry_tags]

    # Exclusion keyword without any positive keyword for the same tag
    for tag in user_tags:
        exclusions = taxonomy.exclusion_keywords(tag)
        if exclusions and any(keyword in text for keyword in exclusions):
            if not any(keyword in text for keyword in taxonomy.positive_keywords(tag)):
                return HardFilterResult.fail(
                    "industry",
                    f"This grant appears to be for a different industry than {tag}",
                )

    categories = [category.lower() for category in grant.categories]
    if categories and any(_category_overlaps(tag, categories, taxonomy) for tag in user_tags):
        return HardFilterResult.ok()

    for tag in user_tags:
        if any(keyword in text for keyword in taxonomy.positive_keywords(tag)):
            return HardFilterResult.ok()

    focus = ", ".join(profile.industry_tags[:2])
    return HardFilterResult.fail(
        "industry",
        f"This grant doesn't appear to be related to {focus}",
    )


# ----- Orchestration -----


def run_hard_filters(
    profile: UserProfile,
    grant: Grant,
    options: HardFilterOptions = STRICT_OPTIONS,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> HardFilterResult:
    """Run every filter in order, returning the first failure."""
    checks: list[Callable[[], HardFilterResult]] = []
    if options.require_url:
        checks.append(lambda: check_url_exists(grant))
    if options.institution_filter:
        checks.append(lambda: check_institution_only(profile, grant, taxonomy))
    checks.extend([
        lambda: check_explicit_exclusion(profile, grant, taxonomy),
        lambda: check_entity_eligibility(profile, grant, taxonomy),
        lambda: check_geography_eligibility(profile, grant, taxonomy),
        lambda: check_industry_minimum(profile, grant, taxonomy),
    ])

    for check in checks:
        result = check()
        if not result.passes:
            return result
    return HardFilterResult.ok()


@dataclass
class FilterBatchResult:
    """Outcome of filtering a candidate pool."""

    eligible: list[Grant] = field(default_factory=list)
    rejected: list[tuple[Grant, HardFilterResult]] = field(default_factory=list)
    failure_counts: dict[str, int] = field(default_factory=dict)

    @property
    def rejection_reasons(self) -> dict[str, str]:
        return {grant.id: result.reason or "" for grant, result in self.rejected}


def filter_eligible_grants(
    profile: UserProfile,
    grants: list[Grant],
    options: HardFilterOptions = STRICT_OPTIONS,
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> FilterBatchResult:
    """Split grants into eligible and rejected, keeping input order.

    A grant whose evaluation raises is rejected with filter name ``error`` so
    the rest of the batch still gets filtered.
    """
    batch = FilterBatchResult()
    for grant in grants:
        try:
            result = run_hard_filters(profile, grant, options, taxonomy)
        except Exception as exc:
            logger.warning("hard_filter_error grant_id=%s error=%s", grant.id, exc)
            result = HardFilterResult.fail("error", "Grant data could not be evaluated")

        if result.passes:
            batch.eligible.append(grant)
        else:
            batch.rejected.append((grant, result))
            name = result.filter_name or "unknown"
            batch.failure_counts[name] = batch.failure_counts.get(name, 0) + 1

    logger.info(
        "hard_filters_complete total=%d eligible=%d rejected=%d require_url=%s",
        len(grants),
        len(batch.eligible),
        len(batch.rejected),
        options.require_url,
    )
    return batch

