"""Unit tests for discovery filter normalization."""
import pytest

from matchfeed.schemas.filters import RawFilterParams
from matchfeed.services.filter_normalizer import (
    MAX_AGE,
    MIN_AGE,
    DiscoveryFilters,
    canonical_token,
    feet_to_inches,
    from_saved_settings,
    merge_filters,
    normalize_filters,
    to_saved_columns,
)

from conftest import make_saved_filters


def raw(**kwargs):
    return RawFilterParams(**kwargs)


class TestCanonicalToken:

    @pytest.mark.parametrize("value,expected", [
        ("Social", "social"),
        ("  Trying to Quit ", "trying_to_quit"),
        ("prefer-not-to-say", "prefer_not_to_say"),
        ("Doesn't Matter", None),
        ("any", None),
        ("", None),
        (None, None),
    ])
    def test_tokens(self, value, expected):
        assert canonical_token(value) == expected


class TestNumbers:

    def test_feet_to_inches_rounds_half_up(self):
        assert feet_to_inches(5.5) == 66
        assert feet_to_inches(5.0) == 60
        # 5.875 ft = 70.5 in
        assert feet_to_inches(5.875) == 71

    @pytest.mark.parametrize("value", ["abc", "-3", "0", "nan", "inf", ""])
    def test_invalid_numbers_are_unset(self, value):
        filters = normalize_filters(raw(min_age=value, max_distance=value))
        assert filters.min_age is None
        assert filters.max_distance_miles is None

    def test_ages_and_heights(self):
        filters = normalize_filters(raw(min_age="25", max_age="35", min_height="5", max_height="6.5"))
        assert filters.min_age == 25
        assert filters.max_age == 35
        assert filters.min_height_inches == 60
        assert filters.max_height_inches == 78

    def test_numeric_input_accepted(self):
        filters = normalize_filters(RawFilterParams(min_age=21, max_distance=12.5))
        assert filters.min_age == 21
        assert filters.max_distance_miles == 12.5

    def test_inverted_range_is_swapped(self):
        filters = normalize_filters(raw(min_age="40", max_age="30"))
        assert (filters.min_age, filters.max_age) == (30, 40)

    @pytest.mark.parametrize("value", ["5000", "2026", "1e6", "121", "17", "3"])
    def test_out_of_range_ages_are_unset(self, value):
        filters = normalize_filters(raw(min_age=value, max_age=value))
        assert filters.min_age is None
        assert filters.max_age is None

    def test_age_range_edges_kept(self):
        filters = normalize_filters(raw(min_age=str(MIN_AGE), max_age=str(MAX_AGE)))
        assert (filters.min_age, filters.max_age) == (MIN_AGE, MAX_AGE)

    @pytest.mark.parametrize("value", ["1e9", "100", "2.9", "9.5"])
    def test_out_of_range_heights_are_unset(self, value):
        filters = normalize_filters(raw(min_height=value, max_height=value))
        assert filters.min_height_inches is None
        assert filters.max_height_inches is None

    def test_one_bad_bound_keeps_the_other(self):
        filters = normalize_filters(raw(min_age="25", max_age="9999"))
        assert (filters.min_age, filters.max_age) == (25, None)


class TestEnums:

    def test_aliases_from_client_names(self):
        filters = normalize_filters(RawFilterParams.model_validate({
            "Smoke": "No",
            "Drinks": "Social",
            "BodyType": "Athletic, Average",
            "Hsign": "Leo",
            "PoliticalView": "Moderate",
        }))
        assert filters.smoking == "no"
        assert filters.drinking == "social"
        assert filters.body_types == frozenset({"athletic", "average"})
        assert filters.zodiac_signs == frozenset({"leo"})
        assert filters.political_views == "moderate"

    def test_have_child_boolean_strings(self):
        assert normalize_filters(raw(have_child="true")).has_kids == "yes"
        assert normalize_filters(raw(have_child="false")).has_kids == "no"

    def test_unknown_token_passes_through_by_default(self):
        filters = normalize_filters(raw(drinks="Fortnightly"))
        assert filters.drinking == "fortnightly"

    def test_unknown_token_dropped_when_strict(self):
        filters = normalize_filters(raw(drinks="Fortnightly", body_type="athletic,blobby"), strict=True)
        assert filters.drinking is None
        assert filters.body_types == frozenset({"athletic"})

    def test_sentinel_only_list_is_unset(self):
        filters = normalize_filters(raw(ethnicity="any, ,all"))
        assert filters.ethnicities is None


class TestEmptyInput:

    def test_none_is_empty(self):
        assert normalize_filters(None).is_empty

    def test_all_unset_is_empty(self):
        assert normalize_filters(raw()).is_empty


class TestMergeAndPersistence:

    def test_override_wins_per_field(self):
        saved = DiscoveryFilters(min_age=20, max_age=50, smoking="no")
        overrides = DiscoveryFilters(max_age=35)
        merged = merge_filters(saved, overrides)
        assert merged.min_age == 20
        assert merged.max_age == 35
        assert merged.smoking == "no"

    def test_crossed_bounds_after_merge_are_swapped(self):
        saved = DiscoveryFilters(min_age=30, max_age=40, min_height_inches=70)
        overrides = normalize_filters(raw(max_age="25", max_height="5"))
        merged = merge_filters(saved, overrides)
        assert (merged.min_age, merged.max_age) == (25, 30)
        assert (merged.min_height_inches, merged.max_height_inches) == (60, 70)

    def test_from_saved_settings_drops_out_of_range_values(self, requester_id):
        row = make_saved_filters(requester_id, min_age=5000, max_age=35, min_height=10**9)
        filters = from_saved_settings(row)
        assert filters.min_age is None
        assert filters.max_age == 35
        assert filters.min_height_inches is None

    def test_from_saved_settings_recanonicalises(self, requester_id):
        row = make_saved_filters(
            requester_id,
            min_age=25,
            max_height=72,
            body_types=["Athletic", "any"],
            drinking="Social",
        )
        filters = from_saved_settings(row)
        assert filters.min_age == 25
        assert filters.max_height_inches == 72
        assert filters.body_types == frozenset({"athletic"})
        assert filters.drinking == "social"

    def test_from_saved_settings_none(self):
        assert from_saved_settings(None).is_empty

    def test_saved_columns_round_trip(self, requester_id):
        filters = normalize_filters(raw(min_age="25", religion="Buddhist,Christian", smoke="no"))
        columns = to_saved_columns(filters)
        assert columns["religions"] == ["buddhist", "christian"]
        assert columns["smoking"] == "no"
        assert columns["min_height"] is None
        assert from_saved_settings(make_saved_filters(requester_id, **columns)) == filters
