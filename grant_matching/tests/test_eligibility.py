"""Unit tests for the hard eligibility filters."""

import logging

import pytest

from grant_matching.eligibility import (
    RELAXED_OPTIONS,
    STRICT_OPTIONS,
    HardFilterOptions,
    filter_eligible_grants,
    run_hard_filters,
)
from grant_matching.eligibility import filter as filter_module


# ---------------------------------------------------------------------------
# URL
# ---------------------------------------------------------------------------

class TestUrlFilter:
    def test_grant_with_url_passes(self, farm_profile, make_grant):
        result = run_hard_filters(farm_profile, make_grant())
        assert result.passes
        assert result.reason is None

    @pytest.mark.parametrize("url", [None, "", "   "])
    def test_missing_url_fails_strict(self, farm_profile, make_grant, url):
        result = run_hard_filters(farm_profile, make_grant(url=url))
        assert not result.passes
        assert result.filter_name == "url"
        assert result.reason == "Grant has no application URL available"

    def test_missing_url_passes_relaxed(self, farm_profile, make_grant):
        result = run_hard_filters(farm_profile, make_grant(url=None), RELAXED_OPTIONS)
        assert result.passes


# ---------------------------------------------------------------------------
# Institution-only
# ---------------------------------------------------------------------------

class TestInstitutionFilter:
    R1_ONLY = {"tags": [], "raw_text": "Open to R1 research institution applicants."}

    def test_small_entity_rejected(self, farm_profile, make_grant):
        result = run_hard_filters(farm_profile, make_grant(eligibility=self.R1_ONLY))
        assert not result.passes
        assert result.filter_name == "institution"
        assert result.reason == "This grant appears to be limited to institutions (r1 research institution)"

    def test_small_entity_keyword_rescues(self, farm_profile, make_grant):
        eligibility = {
            "tags": [],
            "raw_text": "Open to R1 research institution applicants. Small business partners welcome.",
        }
        assert run_hard_filters(farm_profile, make_grant(eligibility=eligibility)).passes

    def test_large_entity_not_checked(self, make_profile, make_grant):
        profile = make_profile(entity_type="government")
        assert run_hard_filters(profile, make_grant(eligibility=self.R1_ONLY)).passes

    def test_can_be_switched_off(self, farm_profile, make_grant):
        options = HardFilterOptions(institution_filter=False)
        assert run_hard_filters(farm_profile, make_grant(eligibility=self.R1_ONLY), options).passes

    @pytest.mark.parametrize("entity_type", ["small_business", "nonprofit"])
    def test_negated_individuals_does_not_rescue(self, make_profile, make_grant, entity_type):
        eligibility = {"tags": [], "raw_text": "Limited to state agencies. Not for individuals."}

        result = run_hard_filters(make_profile(entity_type=entity_type), make_grant(eligibility=eligibility))

        assert result.filter_name == "institution"

    def test_open_to_individuals_rescues(self, farm_profile, make_grant):
        eligibility = {"tags": [], "raw_text": "Limited to state agencies; individuals may apply through a partner."}
        assert run_hard_filters(farm_profile, make_grant(eligibility=eligibility)).passes


# ---------------------------------------------------------------------------
# Explicit exclusion
# ---------------------------------------------------------------------------

def test_explicit_exclusion_phrase(make_profile, make_grant):
    profile = make_profile(entity_type="individual")
    grant = make_grant(description="This program is for organizations only.")

    result = run_hard_filters(profile, grant)

    assert not result.passes
    assert result.filter_name == "entity_exclusion"
    assert result.reason == "Grant explicitly excludes individual applicants"


def test_exclusion_phrases_for_other_entity_types_ignored(farm_profile, make_grant):
    grant = make_grant(description="Nonprofits only may apply.")
    # Phrase belongs to for_profit; the profile is small_business
    assert run_hard_filters(farm_profile, grant).passes


# ---------------------------------------------------------------------------
# Entity type
# ---------------------------------------------------------------------------

class TestEntityFilter:
    def test_entity_mismatch_names_both_sides(self, make_profile, make_grant):
        profile = make_profile(entity_type="individual")
        grant = make_grant(eligibility={"tags": ["State Government"]})

        result = run_hard_filters(profile, grant)

        assert not result.passes
        assert result.filter_name == "entity"
        assert "State Government" in result.reason
        assert "individual" in result.reason
        assert result.reason == "This grant is for State Government, but your organization type is individual"

    def test_open_grant_passes(self, make_profile, make_grant):
        profile = make_profile(entity_type="nonprofit")
        assert run_hard_filters(profile, make_grant(eligibility={"tags": []})).passes

    def test_tags_match_after_normalization(self, farm_profile, make_grant):
        grant = make_grant(eligibility={"tags": ["for-profit businesses"]})
        assert run_hard_filters(farm_profile, grant).passes

    def test_unknown_entity_type_is_neutral(self, make_profile, make_grant):
        profile = make_profile(entity_type="martian")
        grant = make_grant(eligibility={"tags": ["State Government"]})
        assert run_hard_filters(profile, grant).passes

    def test_missing_entity_type_is_neutral(self, make_profile, make_grant):
        profile = make_profile(entity_type=None)
        grant = make_grant(eligibility={"tags": ["State Government"]})
        assert run_hard_filters(profile, grant).passes


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

class TestGeographyFilter:
    CA_ONLY = [{"type": "state", "value": "CA"}]

    def test_exact_state_passes(self, farm_profile, make_grant):
        assert run_hard_filters(farm_profile, make_grant(locations=self.CA_ONLY)).passes

    def test_other_state_fails_citing_both(self, make_profile, make_grant):
        profile = make_profile(state="NY")

        result = run_hard_filters(profile, make_grant(locations=self.CA_ONLY))

        assert not result.passes
        assert result.filter_name == "geography"
        assert result.reason == "This grant is only available in CA, but you're in NY"

    def test_full_state_names_are_normalized(self, make_profile, make_grant):
        profile = make_profile(state="california")
        grant = make_grant(locations=[{"state": "California", "country": "US"}])
        assert run_hard_filters(profile, grant).passes

    def test_national_grant_passes_everywhere(self, make_profile, make_grant):
        profile = make_profile(state="NY")
        grant = make_grant(locations=[{"type": "national"}, {"type": "state", "value": "CA"}])
        assert run_hard_filters(profile, grant).passes

    def test_county_only_restriction_not_enforced(self, make_profile, make_grant):
        profile = make_profile(state="NY")
        grant = make_grant(locations=[{"type": "county", "value": "Los Angeles"}])
        assert run_hard_filters(profile, grant).passes

    def test_profile_without_state_passes(self, make_profile, make_grant):
        profile = make_profile(state=None)
        assert run_hard_filters(profile, make_grant(locations=self.CA_ONLY)).passes


# ---------------------------------------------------------------------------
# Industry minimum
# ---------------------------------------------------------------------------

class TestIndustryFilter:
    def test_exclusion_keyword_without_positive_fails(self, farm_profile, make_grant):
        grant = make_grant(
            title="Cancer Treatment Research Award",
            sponsor="NIH",
            summary="Supports oncology clinical trial work.",
            categories=["Health"],
        )

        result = run_hard_filters(farm_profile, grant)

        assert not result.passes
        assert result.filter_name == "industry"
        assert result.reason == "This grant appears to be for a different industry than agriculture"

    def test_no_relevance_fails(self, farm_profile, make_grant):
        grant = make_grant(
            title="Downtown Theater Renovation",
            sponsor="City Arts Council",
            summary="Support for performing arts venues.",
            categories=["Arts"],
        )

        result = run_hard_filters(farm_profile, grant)

        assert not result.passes
        assert result.reason == "This grant doesn't appear to be related to agriculture"

    def test_category_alias_passes(self, farm_profile, make_grant):
        grant = make_grant(
            title="Community Pantry Program",
            sponsor="State Office",
            summary="Pantry operations.",
            categories=["Food Security"],
        )
        assert run_hard_filters(farm_profile, grant).passes

    @pytest.mark.parametrize("summary", ["General operating costs.", "Support for farmer cooperatives."])
    def test_operating_and_cooperative_text_not_excluded(self, farm_profile, make_grant, summary):
        grant = make_grant(
            title="Operating Support for Cooperatives",
            sponsor="State Office",
            summary=summary,
            categories=["Agriculture"],
        )
        assert run_hard_filters(farm_profile, grant).passes

    def test_opera_company_still_excluded(self, farm_profile, make_grant):
        grant = make_grant(
            title="Opera Company Touring Grant",
            sponsor="State Office",
            summary="Funds an opera company season.",
            categories=["Agriculture"],
        )
        result = run_hard_filters(farm_profile, grant)
        assert result.reason == "This grant appears to be for a different industry than agriculture"

    def test_unknown_industry_tag_uses_tag_as_keyword(self, make_profile, make_grant):
        profile = make_profile(industry_tags=["beekeeping_supplies"])
        grant = make_grant(title="Beekeeping Supplies Mini Grant", categories=[])
        assert run_hard_filters(profile, grant).passes

    def test_profile_without_industries_passes(self, make_profile, make_grant):
        profile = make_profile(industry_tags=[])
        grant = make_grant(title="Downtown Theater Renovation", summary="Arts venues.", categories=["Arts"])
        assert run_hard_filters(profile, grant).passes


# ---------------------------------------------------------------------------
# Ordering and monotonicity
# ---------------------------------------------------------------------------

def test_relaxing_url_only_changes_url_outcome(make_profile, make_grant):
    profile = make_profile(entity_type="individual")
    grant = make_grant(url=None, eligibility={"tags": ["State Government"]})

    strict = run_hard_filters(profile, grant, STRICT_OPTIONS)
    relaxed = run_hard_filters(profile, grant, RELAXED_OPTIONS)

    assert strict.filter_name == "url"
    assert not relaxed.passes
    assert relaxed.filter_name == "entity"


# ---------------------------------------------------------------------------
# Batch helper
# ---------------------------------------------------------------------------

class TestFilterEligibleGrants:
    def test_splits_and_counts(self, farm_profile, make_grant, caplog):
        grants = [
            make_grant(id="ok"),
            make_grant(id="no-url", url=None),
            make_grant(id="ny-only", locations=[{"type": "state", "value": "NY"}]),
        ]

        with caplog.at_level(logging.INFO):
            batch = filter_eligible_grants(farm_profile, grants)

        assert [grant.id for grant in batch.eligible] == ["ok"]
        assert batch.failure_counts == {"url": 1, "geography": 1}
        assert batch.rejection_reasons["no-url"] == "Grant has no application URL available"
        assert "you're in CA" in batch.rejection_reasons["ny-only"]
        assert "hard_filters_complete total=3 eligible=1 rejected=2" in caplog.text

    def test_one_broken_grant_does_not_abort_batch(self, farm_profile, make_grant, monkeypatch):
        original = filter_module.check_geography_eligibility

        def flaky(profile, grant, taxonomy):
            if grant.id == "broken":
                raise KeyError("locations")
            return original(profile, grant, taxonomy)

        monkeypatch.setattr(filter_module, "check_geography_eligibility", flaky)

        batch = filter_eligible_grants(farm_profile, [make_grant(id="broken"), make_grant(id="fine")])

        assert [grant.id for grant in batch.eligible] == ["fine"]
        assert batch.failure_counts == {"error": 1}
        assert batch.rejection_reasons["broken"] == "Grant data could not be evaluated"
