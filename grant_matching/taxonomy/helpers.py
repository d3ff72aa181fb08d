"""Small pure functions over the taxonomy tables."""

from typing import Iterable, Mapping, Optional, Sequence

from .taxonomy import DEFAULT_TAXONOMY, Taxonomy


def normalize_to_canonical(
    value: str,
    canonical: Sequence[str],
    synonyms: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Map free text onto a canonical value.

    Tries a case-insensitive exact match, then the synonym table, then a
    substring match in either direction. The first hit wins; there is no
    ambiguity resolution beyond list order.
    """
    normalized = value.lower().strip()
    if not normalized:
        return None

    for candidate in canonical:
        if candidate.lower() == normalized:
            return candidate

    if synonyms and normalized in synonyms:
        return synonyms[normalized]

    for candidate in canonical:
        lowered = candidate.lower()
        if normalized in lowered or lowered in normalized:
            return candidate

    return None


def normalize_state(value: Optional[str], taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> Optional[str]:
    """Return the two-letter code for a state code or full state name."""
    if not value:
        return None
    code = value.strip().upper()
    if code in taxonomy.us_states:
        return code

    name = value.strip().lower()
    for state_code, state_name in taxonomy.us_states.items():
        if state_name.lower() == name:
            return state_code
    return None


def contains_keywords(text: str, keywords: Iterable[str]) -> bool:
    text = text.lower()
    return any(keyword.lower() in text for keyword in keywords)


def count_keyword_matches(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords found in text (substring, case-insensitive)."""
    text = text.lower()
    return sum(1 for keyword in keywords if keyword.lower() in text)


def get_grant_size_category(
    amount_min: Optional[float],
    amount_max: Optional[float],
    taxonomy: Taxonomy = DEFAULT_TAXONOMY,
) -> str:
    """micro / small / medium / large from ``max ?? min ?? 0``."""
    amount = amount_max or amount_min or 0
    for category, upper_bound in taxonomy.grant_size_breakpoints:
        if amount < upper_bound:
            return category
    return "large"


def format_funding_display(
    amount_min: Optional[float],
    amount_max: Optional[float],
    amount_text: Optional[str] = None,
) -> str:
    if amount_text:
        return amount_text
    if amount_min and amount_max and amount_min != amount_max:
        return f"${amount_min:,.0f} - ${amount_max:,.0f}"
    if amount_max:
        return f"Up to ${amount_max:,.0f}"
    if amount_min:
        return f"From ${amount_min:,.0f}"
    return "Varies"
